"""Test fixtures for OverlayTreeLib consumers.

These fixtures provide controlled access to internal state for testing purposes
without exposing implementation details as part of the public API.
"""

from typing import Any, Dict, List, Optional

from ..core.node import Node
from ..observe.records import ChangeRecord


class CacheTestHelper:
    """Public test fixture for registration cache verification.

    Example:
        context = TreeContext()
        testable = CacheTestHelper(context)

        observer.subscribe(root, childList=True, subtree=True)
        mutator.append(leaf, context.create_text('x'))
        assert testable.is_cached(leaf)
    """

    def __init__(self, context):
        """Initialize with the TreeContext whose cache is inspected.

        Args:
            context: The TreeContext under test
        """
        self._context = context

    def get_summary(self) -> Dict[str, Any]:
        """Returns high-level cache state for testing.

        Returns:
            Dictionary containing:
            - total_entries: Number of memoized nodes
            - hits / misses / invalidations: Lookup counters
            - has_cache: Whether the cache is enabled
        """
        stats = self._context.cache.get_stats()
        return {
            'total_entries': stats['cache_size'],
            'hits': stats['cache_hits'],
            'misses': stats['cache_misses'],
            'invalidations': stats['invalidations'],
            'has_cache': stats['enabled'],
        }

    def is_cached(self, node: Node) -> bool:
        """Check if a lookup for ``node`` is currently memoized."""
        return node in self._context.cache

    def cached_observers(self, node: Node) -> Optional[List[Any]]:
        """Observers reachable from the memoized entry for ``node``.

        Returns:
            Observers in lookup order, or None if ``node`` is not cached
        """
        if node not in self._context.cache:
            return None
        entries = self._context.cache._cache[node]
        return [registration.observer for _owner, registration in entries]


class RecordingObserver:
    """Callback object that keeps every delivered batch.

    Example:
        recorder = RecordingObserver()
        observer = context.create_observer(recorder)
        ...
        context.flush()
        assert recorder.batches == [[record]]
    """

    def __init__(self, log: Optional[List[Any]] = None):
        """Initialize the recorder.

        Args:
            log: Shared list receiving ``(observer uid, batch)`` tuples, for
                checking delivery order across several observers
        """
        self.batches: List[List[ChangeRecord]] = []
        self.log = log

    def __call__(self, records: List[ChangeRecord], observer) -> None:
        self.batches.append(records)
        if self.log is not None:
            self.log.append((observer.uid, records))

    @property
    def records(self) -> List[ChangeRecord]:
        """All delivered records, flattened."""
        return [record for batch in self.batches for record in batch]

    @property
    def call_count(self) -> int:
        return len(self.batches)


def assert_logical_tree_valid(root: Node) -> None:
    """Assert the logical pointers under ``root`` are mutually consistent.

    For every node reachable from ``root``: each child's parent is the
    node, sibling links are symmetric, and first/last child agree with the
    ends of the sibling chain.

    Raises:
        AssertionError: Describing the first inconsistency found
    """
    for node in root.iter_subtree():
        children = []
        child = node.first_child
        previous = None
        while child is not None:
            assert child.parent is node, f"{child!r}.parent is {child.parent!r}, expected {node!r}"
            assert child.previous_sibling is previous, (
                f"{child!r}.previous_sibling is {child.previous_sibling!r}, expected {previous!r}")
            assert child not in children, f"cycle in the children of {node!r}"
            children.append(child)
            previous = child
            child = child.next_sibling
        assert node.last_child is previous, f"{node!r}.last_child is {node.last_child!r}, expected {previous!r}"
        if not children:
            assert node.first_child is None
