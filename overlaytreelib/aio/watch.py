"""Async iteration over delivered change batches."""

import asyncio
from typing import TYPE_CHECKING, Any, AsyncIterator, List, Mapping, Optional

from ..core.node import Node
from ..observe.records import ChangeRecord

if TYPE_CHECKING:
    from ..context import TreeContext


async def watch(context: 'TreeContext', target: Node,
                config: Optional[Mapping[str, Any]] = None,
                **options: Any) -> AsyncIterator[List[ChangeRecord]]:
    """Yield each batch delivered for ``target``.

    The subscription is created when iteration starts (the first
    ``__anext__``) and removed when the iterator is closed.

    Args:
        context: Context that owns ``target``
        target: Node to observe
        config: Observer options mapping (camelCase names)
        **options: Observer options as keywords

    Yields:
        Lists of ChangeRecords, one list per delivery

    Example:
        async for records in watch(context, root, childList=True, subtree=True):
            handle(records)
    """
    queue: asyncio.Queue = asyncio.Queue()
    observer = context.create_observer(lambda records, _observer: queue.put_nowait(records))
    observer.subscribe(target, config, **options)
    try:
        while True:
            yield await queue.get()
    finally:
        observer.unsubscribe()
