"""asyncio end-of-turn scheduling.

AsyncioTurn queues the scheduler flush with ``loop.call_soon``: every
mutation made by the currently running callback or coroutine step is
applied before any observer hears about it.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class AsyncioTurn:
    """Turn that delivers on the next iteration of an asyncio event loop.

    Example:
        context = TreeContext(turn=AsyncioTurn())
        context.mutator.append(root, child)
        await asyncio.sleep(0)  # observers have been called
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Initialize the turn.

        Args:
            loop: Loop to schedule on. When omitted, the running loop at
                the time of the first mutation of a batch is used.
        """
        self._loop = loop
        self._handle: Optional[asyncio.Handle] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` for the next loop iteration.

        Raises:
            RuntimeError: If no loop was given and none is running
        """
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_soon(self._run, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _run(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()
