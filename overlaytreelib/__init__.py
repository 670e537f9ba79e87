"""OverlayTreeLib - Composed Trees with Batched Change Observation.

OverlayTreeLib keeps a logical (composed) tree on top of a physical one and
lets observers subscribe to structural, attribute and text changes. Changes
are recorded as they happen and delivered in batches at the end of a turn.

Choose your turn:
━━━━━━━━━━━━━━━━━━━━━━━━━━
Explicit flush:
    context = TreeContext()
    ...
    context.flush()

asyncio:
    from overlaytreelib.aio import AsyncioTurn
    context = TreeContext(turn=AsyncioTurn())
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from .config import ContextConfig, ObserverOptions
from .context import TreeContext
from .core import InMemoryPhysicalTree, Node, NodeType, PhysicalTreeAdapter, TreeScope
from .errors import (
    ConfigurationError,
    HierarchyRequestError,
    NotFoundError,
    OverlayTreeError,
    WrongContextError,
)
from .mutation import TreeMutator
from .observe import (
    ChangeKind,
    ChangeRecord,
    CollectErrorsPolicy,
    ContinueOnErrorsPolicy,
    ErrorPolicy,
    FailFastPolicy,
    ManualTurn,
    ObserverHandle,
    ThresholdPolicy,
)
from . import aio

__all__ = [
    "__version__",
    "TreeContext",
    "ContextConfig",
    "ObserverOptions",
    "Node",
    "NodeType",
    "PhysicalTreeAdapter",
    "InMemoryPhysicalTree",
    "TreeScope",
    "TreeMutator",
    "ObserverHandle",
    "ChangeKind",
    "ChangeRecord",
    "ManualTurn",
    "ErrorPolicy",
    "FailFastPolicy",
    "ContinueOnErrorsPolicy",
    "CollectErrorsPolicy",
    "ThresholdPolicy",
    "OverlayTreeError",
    "ConfigurationError",
    "NotFoundError",
    "WrongContextError",
    "HierarchyRequestError",
    "aio",
]
