"""Logical overlay pointer helpers.

These functions only touch the logical pointer fields. The physical tree
is changed through the PhysicalTreeAdapter, never here.

Invariant kept by the mutator: whenever a child of ``parent`` carries a
logical parent or sibling pointer, ``parent`` has its own first/last
child pointers pinned as well. That is what lets ``has_overlaid_children``
look only at the parent.
"""

from typing import Iterable, Optional

from ..core.node import UNSET, Node


def materialize_children(parent: Node) -> None:
    """Pin ``parent``'s child list into the logical pointers.

    Sets the parent's first/last child and every child's parent and
    sibling pointers to their current values. After this call the logical
    view of the child list no longer depends on the physical tree, so
    physical primitives can run without changing it.
    """
    children = parent.child_nodes
    parent._first = children[0] if children else None
    parent._last = children[-1] if children else None
    for child in children:
        nxt, prev = child.next_sibling, child.previous_sibling
        child._parent = parent
        child._next = nxt
        child._prev = prev


def has_overlaid_children(parent: Node) -> bool:
    return parent._first is not UNSET or parent._last is not UNSET


def clear_child_nodes(parent: Node) -> None:
    """Drop the overlay on ``parent``'s child list.

    Used before a direct physical mutation, when the physical tree is
    authoritative again for ``parent``.
    """
    child = parent._first if parent._first is not UNSET else None
    while child is not None:
        following = child._next if child._next is not UNSET else child._phys_next
        release(child)
        child = following
    parent._first = parent._last = UNSET


def collapse(node: Node) -> bool:
    """Drop the overlay on ``node``'s child list if it matches the physical one.

    Returns:
        True if the overlay was dropped
    """
    if not has_overlaid_children(node):
        return False
    physical = []
    child = node._phys_first
    while child is not None:
        physical.append(child)
        child = child._phys_next
    if node.child_nodes != physical:
        return False
    clear_child_nodes(node)
    return True


def release(node: Node) -> None:
    """Return a node's parent and sibling pointers to the physical values."""
    node._parent = node._next = node._prev = UNSET


def link_nodes(parent: Node, nodes: Iterable[Node], previous: Optional[Node], following: Optional[Node]) -> None:
    """Logically splice ``nodes`` into ``parent`` between two siblings.

    Args:
        parent: Parent whose children were materialized
        nodes: Free nodes to link, in order
        previous: Sibling that will precede the first node (None at the start)
        following: Sibling that will follow the last node (None at the end)
    """
    nodes = list(nodes)
    if not nodes:
        return
    for index, node in enumerate(nodes):
        node._parent = parent
        node._prev = nodes[index - 1] if index > 0 else previous
        node._next = nodes[index + 1] if index + 1 < len(nodes) else following

    if previous is None:
        parent._first = nodes[0]
    else:
        previous._next = nodes[0]
    if following is None:
        parent._last = nodes[-1]
    else:
        following._prev = nodes[-1]


def unlink_node(parent: Node, node: Node) -> None:
    """Logically remove ``node`` from ``parent``'s materialized child list.

    The node must already be physically detached; its own pointers fall
    back to the (empty) physical values.
    """
    previous, following = node.previous_sibling, node.next_sibling
    if previous is None:
        parent._first = following
    else:
        previous._next = following
    if following is None:
        parent._last = previous
    else:
        following._prev = previous
    release(node)
