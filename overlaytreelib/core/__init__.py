"""Core abstractions for OverlayTreeLib.

This module contains the node data model, the physical tree adapter
interface and composition scopes.
"""

from .node import Node, NodeType, UNSET, CHARACTER_DATA_TYPES
from .adapter import PhysicalTreeAdapter, InMemoryPhysicalTree
from .scope import TreeScope

__all__ = [
    "Node",
    "NodeType",
    "UNSET",
    "CHARACTER_DATA_TYPES",
    "PhysicalTreeAdapter",
    "InMemoryPhysicalTree",
    "TreeScope",
]
