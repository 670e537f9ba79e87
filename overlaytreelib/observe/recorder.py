"""Change recording.

The ChangeRecorder turns a mutation descriptor into ChangeRecords and puts
them on the queues of interested observers. Observers that need the same
variant of a record share one instance; the old-value variant is built
separately, and only if somebody asked for it.
"""

from typing import Optional

from ..core.node import Node
from .records import ChangeDescriptor, ChangeKind, ChangeRecord
from .registry import ObservationRegistry
from .scheduler import NotificationScheduler, SchedulerState


class ChangeRecorder:
    """Builds records for one mutation and enqueues them.

    Example:
        recorder.record(parent, ChangeKind.CHILD_LIST,
                        ChangeDescriptor(added_nodes=(child,)))
    """

    def __init__(self, registry: ObservationRegistry, scheduler: NotificationScheduler,
                 share_records: bool = True):
        """Initialize the recorder.

        Args:
            registry: Registry answering which observers are interested
            scheduler: Scheduler signalled when a queue becomes non-empty
            share_records: Share one record instance across observers that
                need the same variant. When False every observer gets its
                own (equal) instance.
        """
        self._registry = registry
        self._scheduler = scheduler
        self.share_records = share_records
        self.records_created = 0

    def record(self, target: Node, kind: ChangeKind, descriptor: ChangeDescriptor) -> int:
        """Record one mutation.

        Args:
            target: Node the change happened on
            kind: Kind of change
            descriptor: Mutation details, always including the old value

        Returns:
            Number of observers the change was queued for
        """
        interested = self._registry.collect_interested(target, kind, descriptor)
        if not interested:
            return 0

        shared: Optional[ChangeRecord] = None
        shared_old: Optional[ChangeRecord] = None

        for observer, wants_old_value in interested.items():
            if not self.share_records:
                record = self._build(kind, target, descriptor, wants_old_value)
            elif wants_old_value:
                if shared_old is None:
                    shared_old = self._build(kind, target, descriptor, True)
                record = shared_old
            else:
                if shared is None:
                    shared = self._build(kind, target, descriptor, False)
                record = shared

            # An idle scheduler with a non-empty queue means an earlier arm failed.
            if observer._enqueue(record) or self._scheduler.state is SchedulerState.IDLE:
                self._scheduler.signal(observer)

        return len(interested)

    def _build(self, kind: ChangeKind, target: Node, descriptor: ChangeDescriptor,
               include_old_value: bool) -> ChangeRecord:
        self.records_created += 1
        return ChangeRecord.from_descriptor(kind, target, descriptor, include_old_value)
