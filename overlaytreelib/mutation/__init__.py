"""Tree mutation for OverlayTreeLib.

The TreeMutator is the single entry point for changing a tree; the
overlay helpers maintain the logical pointers it relies on.
"""

from .mutator import TreeMutator

__all__ = [
    "TreeMutator",
]
