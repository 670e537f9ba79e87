"""Registration lookup cache.

Memoizes, per node, the registrations reachable from the node and its
ancestors. The cache is purely a performance layer: every entry can be
recomputed from the registration table, so LRU eviction is always safe.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from cachetools import LRUCache

from ..core.node import Node

logger = logging.getLogger(__name__)


class RegistrationCache:
    """Bounded memo of ancestor-chain registration lookups.

    Keys are nodes (identity hashed); values are tuples of
    ``(owner_node, registration)`` pairs ordered from the node itself up
    to the root.

    Example:
        cache = RegistrationCache(max_entries=5000)
        cache.put(node, entries)
        cache.invalidate_subtree(node)  # after node moves or gains a registration
    """

    def __init__(self, max_entries: int = 10000, enabled: bool = True):
        """Initialize the cache.

        Args:
            max_entries: Maximum number of memoized nodes
            enabled: If False, every lookup is a miss and nothing is stored
        """
        self.enabled = enabled
        self._cache: Optional[LRUCache] = LRUCache(maxsize=max_entries) if enabled else None

        # Statistics
        self.hits = 0
        self.misses = 0
        self.invalidations = 0

    def get(self, node: Node) -> Optional[Tuple[Any, ...]]:
        """Return the memoized entries for ``node`` or None on a miss."""
        if self._cache is None:
            self.misses += 1
            return None
        entries = self._cache.get(node)
        if entries is None:
            self.misses += 1
        else:
            self.hits += 1
        return entries

    def put(self, node: Node, entries: Tuple[Any, ...]) -> None:
        if self._cache is not None:
            self._cache[node] = entries

    def invalidate(self, node: Node) -> bool:
        """Drop the entry for a single node.

        Returns:
            True if an entry was removed
        """
        if not self._cache:
            return False
        if self._cache.pop(node, None) is None:
            return False
        self.invalidations += 1
        return True

    def invalidate_subtree(self, node: Node) -> int:
        """Drop entries for ``node`` and all of its logical descendants.

        Returns:
            Number of entries removed
        """
        if not self._cache:
            return 0
        count = 0
        for member in node.iter_subtree():
            if self.invalidate(member):
                count += 1
        if count:
            logger.debug("Invalidated %d cached lookup(s) under %r", count, node)
        return count

    def clear(self) -> None:
        """Clear all cached entries."""
        if self._cache is not None:
            self._cache.clear()

    def __contains__(self, node: Node) -> bool:
        return self._cache is not None and node in self._cache

    def __len__(self) -> int:
        return len(self._cache) if self._cache is not None else 0

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics for monitoring and debugging."""
        total_requests = self.hits + self.misses
        return {
            'enabled': self.enabled,
            'cache_hits': self.hits,
            'cache_misses': self.misses,
            'hit_rate': self.hits / total_requests if total_requests > 0 else 0,
            'invalidations': self.invalidations,
            'cache_size': len(self),
            'max_size': self._cache.maxsize if self._cache is not None else 0,
        }
