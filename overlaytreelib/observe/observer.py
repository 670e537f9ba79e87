"""Observer handles.

An ObserverHandle is what user code holds: it owns the callback, the
queue of records waiting for delivery and the list of nodes it observes.
"""

import itertools
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional

from ..config import ObserverOptions
from ..core.node import Node
from ..errors import WrongContextError
from .records import ChangeRecord
from .registry import Registration

if TYPE_CHECKING:
    from ..context import TreeContext

ObserverCallback = Callable[[List[ChangeRecord], 'ObserverHandle'], Any]

_uids = itertools.count(1)


class ObserverHandle:
    """A subscriber to tree changes.

    Handles are created with ``TreeContext.create_observer``. Each one gets
    a monotonically increasing ``uid``; batches are delivered in uid order.

    Example:
        def on_change(records, observer):
            for record in records:
                print(record.type, record.target)

        observer = context.create_observer(on_change)
        observer.subscribe(root, childList=True, subtree=True)
    """

    def __init__(self, context: 'TreeContext', callback: ObserverCallback):
        self.uid = next(_uids)
        self.context = context
        self.callback = callback
        self._targets: List[Node] = []
        self._queue: List[ChangeRecord] = []

    @property
    def targets(self) -> List[Node]:
        """Nodes this observer is currently registered on."""
        return list(self._targets)

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def subscribe(self, target: Node, config: Optional[Mapping[str, Any]] = None,
                  **options: Any) -> Registration:
        """Start (or update) observing ``target``.

        Args:
            target: Node to observe
            config: Mapping using the camelCase option names
            **options: Options as keywords (snake_case or camelCase)

        Returns:
            The Registration for this observer and target

        Raises:
            ConfigurationError: If the options are invalid; nothing changes
            WrongContextError: If ``target`` belongs to another context
        """
        parsed = ObserverOptions.from_mapping(config, **options)
        if target.context is not self.context:
            raise WrongContextError(f"{target!r} belongs to a different tree context")
        return self.context.registry.subscribe(self, target, parsed)

    # DOM-style alias
    observe = subscribe

    def unsubscribe(self) -> None:
        """Stop observing every target and drop undelivered records."""
        self.context.registry.unsubscribe(self)
        self.context.scheduler.discard(self)
        self._queue = []

    disconnect = unsubscribe

    def take_records(self) -> List[ChangeRecord]:
        """Return and clear the pending records without invoking the callback.

        Transient registrations and the scheduler are left alone.
        """
        return self._drain()

    def _enqueue(self, record: ChangeRecord) -> bool:
        """Queue a record; True if the queue was empty before."""
        was_empty = not self._queue
        self._queue.append(record)
        return was_empty

    def _drain(self) -> List[ChangeRecord]:
        records, self._queue = self._queue, []
        return records

    def __repr__(self) -> str:
        return f"ObserverHandle(uid={self.uid}, targets={len(self._targets)}, pending={len(self._queue)})"
