"""Composition scopes.

A TreeScope is a composition boundary: a separate tree (rooted at a
fragment-like node) attached to a host node. The host's logical children
are redistributed by a renderer, so mutations touching a host or a scope
member go through the logical overlay instead of the physical tree.

Rendering itself is out of scope; the TreeScope only tracks membership,
a dirty flag, and notifies listeners through the ``nodes_were_added`` /
``node_was_removed`` hooks.
"""

from typing import Callable, List, Optional, Sequence

from .node import Node

AddedListener = Callable[['TreeScope', Sequence[Node]], None]
RemovedListener = Callable[['TreeScope', Node], None]
InvalidateListener = Callable[['TreeScope'], None]


class TreeScope:
    """Composition scope rooted at ``root`` and hosted by ``host``.

    Example:
        scope = context.attach_scope(host)
        scope.add_listener(on_added=lambda scope, nodes: renderer.distribute(nodes))
    """

    def __init__(self, root: Node, host: Optional[Node] = None):
        """Initialize the scope and claim its root.

        Args:
            root: Fragment-like node at the top of the scope
            host: Node the scope is attached to (None for a free-standing scope)
        """
        self.root = root
        self.host = host
        self.dirty = False
        self._added_listeners: List[AddedListener] = []
        self._removed_listeners: List[RemovedListener] = []
        self._invalidate_listeners: List[InvalidateListener] = []
        root.owner_scope = self

    def add_listener(self,
                     on_added: Optional[AddedListener] = None,
                     on_removed: Optional[RemovedListener] = None,
                     on_invalidate: Optional[InvalidateListener] = None) -> None:
        """Register renderer-side callbacks for composition changes."""
        if on_added is not None:
            self._added_listeners.append(on_added)
        if on_removed is not None:
            self._removed_listeners.append(on_removed)
        if on_invalidate is not None:
            self._invalidate_listeners.append(on_invalidate)

    def is_root(self, node: Node) -> bool:
        return node is self.root

    def invalidate(self) -> None:
        """Mark the composed view as needing recomputation."""
        self.dirty = True
        for listener in self._invalidate_listeners:
            listener(self)

    def mark_clean(self) -> None:
        self.dirty = False

    def nodes_were_added(self, nodes: Sequence[Node]) -> None:
        """Claim newly inserted nodes (and their subtrees) for this scope."""
        for node in nodes:
            for member in node.iter_subtree():
                member.owner_scope = self
        for listener in self._added_listeners:
            listener(self, nodes)

    def node_was_removed(self, node: Node) -> None:
        """Notify listeners that ``node`` left a parent inside this scope."""
        for listener in self._removed_listeners:
            listener(self, node)

    def __repr__(self) -> str:
        return f"TreeScope(host={self.host!r})"
