"""asyncio integration for OverlayTreeLib.

Deliver observer batches from an asyncio event loop instead of an
explicit ``TreeContext.flush()`` call, and consume them as an async
iterator.
"""

from .turn import AsyncioTurn
from .watch import watch

__all__ = [
    "AsyncioTurn",
    "watch",
]
