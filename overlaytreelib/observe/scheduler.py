"""Notification scheduling.

The NotificationScheduler batches deliveries to the end of the current
execution turn. What "end of turn" means is decided by a turn object:

- ManualTurn: the host calls ``run()`` (or ``TreeContext.flush()``) from
  its own event loop.
- aio.AsyncioTurn: the flush is queued with ``loop.call_soon``.

A turn provides ``arm(callback)`` and ``cancel()``; the scheduler
guarantees it arms at most once per batch.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from .error_policies import ContinueOnErrorsPolicy, ErrorPolicy

if TYPE_CHECKING:
    from .observer import ObserverHandle
    from .registry import ObservationRegistry

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Delivery state of the scheduler."""
    IDLE = "idle"            # No end-of-turn callback armed
    SCHEDULED = "scheduled"  # A flush is armed and will run


class ManualTurn:
    """Turn that runs the armed callback when the host says so."""

    def __init__(self):
        self._callback: Optional[Callable[[], None]] = None

    @property
    def armed(self) -> bool:
        return self._callback is not None

    def arm(self, callback: Callable[[], None]) -> None:
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    def run(self) -> bool:
        """Run the armed callback, if any.

        Returns:
            True if a callback ran
        """
        callback, self._callback = self._callback, None
        if callback is None:
            return False
        callback()
        return True


class NotificationScheduler:
    """Delivers queued records to observers in creation order.

    Example:
        scheduler = NotificationScheduler(registry, ManualTurn())
        scheduler.signal(observer)   # arms the turn once
        scheduler.flush()            # delivers every pending batch
    """

    def __init__(self, registry: 'ObservationRegistry', turn=None,
                 error_policy: Optional[ErrorPolicy] = None):
        """Initialize the scheduler.

        Args:
            registry: Registry whose transient registrations are cleared
                before each delivery
            turn: Object with ``arm(callback)`` and ``cancel()`` (ManualTurn by default)
            error_policy: How callback failures are handled
                (ContinueOnErrorsPolicy by default)
        """
        self._registry = registry
        self.turn = turn if turn is not None else ManualTurn()
        self.error_policy = error_policy or ContinueOnErrorsPolicy()
        self.state = SchedulerState.IDLE
        self._pending: List['ObserverHandle'] = []

        # Statistics
        self.flush_count = 0
        self.delivery_count = 0

    @property
    def pending(self) -> List['ObserverHandle']:
        """Snapshot of observers waiting for delivery."""
        return list(self._pending)

    def signal(self, observer: 'ObserverHandle') -> None:
        """Mark ``observer`` as having records and arm the turn if idle.

        If the turn cannot be armed the error propagates and the scheduler
        stays IDLE with ``observer`` still pending, so the next signal
        tries again.
        """
        if observer not in self._pending:
            self._pending.append(observer)
        if self.state is SchedulerState.IDLE:
            logger.debug("Scheduling delivery for observer %d", observer.uid)
            self.turn.arm(self.flush)
            self.state = SchedulerState.SCHEDULED

    def discard(self, observer: 'ObserverHandle') -> None:
        """Forget a pending observer (used on unsubscribe)."""
        if observer in self._pending:
            self._pending.remove(observer)

    def flush(self) -> int:
        """Deliver every pending batch.

        The state returns to IDLE before any callback runs, so mutations
        made by callbacks either join the current cycle or arm a new turn.
        Cycles repeat until no observer has pending records.

        Returns:
            Number of callbacks invoked
        """
        self.state = SchedulerState.IDLE
        self.flush_count += 1
        delivered = 0
        propagated: Optional[BaseException] = None
        cycles = 0

        while self._pending:
            cycles += 1
            observers = sorted(self._pending, key=lambda o: o.uid)
            self._pending = []

            for observer in observers:
                records = observer._drain()
                self._registry.clear_transients(observer)
                if not records:
                    continue
                delivered += 1
                try:
                    observer.callback(records, observer)
                except Exception as error:
                    try:
                        self.error_policy.handle(error, observer, records)
                    except Exception as raised:
                        if propagated is None:
                            propagated = raised

        # Callbacks may have re-armed the turn; every queue is empty now.
        if self.state is SchedulerState.SCHEDULED:
            self.state = SchedulerState.IDLE
            self.turn.cancel()

        self.delivery_count += delivered
        logger.debug("Flush delivered %d batch(es) in %d cycle(s)", delivered, cycles)
        if propagated is not None:
            raise propagated
        return delivered
