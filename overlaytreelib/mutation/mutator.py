"""TreeMutator: every structural, text and attribute change goes through here.

For each child-list mutation the mutator picks one of two paths:

- Physical path: neither the parent nor the moved node's old parent takes
  part in composition. Any stale overlay on the parent's children is
  dropped and the physical primitives do the work; the logical view simply
  follows the physical tree.
- Overlay path: the parent (or old parent) is a scope host or scope
  member. The parent's child list is pinned into the logical pointers,
  spliced there, and the physical primitive is applied wherever the
  reference node physically lives.

Either way, exactly one CHILD_LIST record is emitted per call against the
parent (plus the removal record when a node is taken from its old parent
or from a fragment).
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..core.node import Node, NodeType
from ..errors import HierarchyRequestError, NotFoundError, OverlayTreeError, WrongContextError
from ..observe.records import ChangeDescriptor, ChangeKind
from . import overlay

if TYPE_CHECKING:
    from ..context import TreeContext

logger = logging.getLogger(__name__)

PARENT_TYPES = frozenset({NodeType.ELEMENT, NodeType.DOCUMENT, NodeType.DOCUMENT_FRAGMENT})


class TreeMutator:
    """Applies mutations and reports them to the ChangeRecorder.

    Example:
        mutator = context.mutator
        mutator.append(root, context.create_element('item'))
        mutator.set_attribute(root, 'class', 'active')
    """

    def __init__(self, context: 'TreeContext'):
        self.context = context
        self._physical = context.physical
        self._registry = context.registry
        self._recorder = context.recorder

    # Child list mutations

    def insert(self, parent: Node, node: Node, before: Optional[Node] = None) -> Node:
        """Insert ``node`` into ``parent`` before ``before``.

        A document fragment contributes its children, in order. A node that
        already has a parent is removed from it first (which is recorded
        against the old parent).

        Args:
            parent: New parent
            node: Node or fragment to insert
            before: Child of ``parent`` to insert before, or None to append

        Returns:
            The inserted node (the fragment, for fragments)

        Raises:
            NotFoundError: If ``before`` is not a child of ``parent``
            WrongContextError: If a node belongs to another context
            HierarchyRequestError: If ``node`` can never go under ``parent``
        """
        self._check_insertion(parent, node)
        if before is not None and before.parent is not parent:
            raise NotFoundError(f"{before!r} is not a child of {parent!r}")
        if before is node:
            before = node.next_sibling

        use_overlay = self._needs_overlay(parent, node)
        nodes = self._collect(node)
        if not nodes:
            return node

        previous = before.previous_sibling if before is not None else parent.last_child
        self._attach(parent, nodes, before, use_overlay)

        self._nodes_were_added(parent, nodes)
        self._record_child_list(parent, added=nodes, previous=previous, following=before)
        return node

    def append(self, parent: Node, node: Node) -> Node:
        """Append ``node`` as the last child of ``parent``."""
        return self.insert(parent, node, None)

    def remove(self, parent: Node, node: Node) -> Node:
        """Remove ``node`` from ``parent``.

        Observers with subtree registrations above ``parent`` keep seeing
        changes inside the removed subtree until their next delivery.

        Raises:
            NotFoundError: If ``node`` is not a child of ``parent``
        """
        if parent is None or node.parent is not parent:
            raise NotFoundError(f"{node!r} is not a child of {parent!r}")

        previous, following = node.previous_sibling, node.next_sibling
        use_overlay = self._physical.invalidate_composition(parent)
        self._detach(parent, node, use_overlay)

        self._notify_removed(parent, node)
        self._record_child_list(parent, removed=[node], previous=previous, following=following)
        self._registry.add_transient(parent, node)
        self._node_was_removed(node)
        return node

    def replace(self, parent: Node, new_node: Node, old_node: Node) -> Node:
        """Replace ``old_node`` with ``new_node`` in one recorded step.

        Returns:
            The node that was replaced

        Raises:
            NotFoundError: If ``old_node`` is not a child of ``parent``
        """
        if parent is None or old_node.parent is not parent:
            raise NotFoundError(f"{old_node!r} is not a child of {parent!r}")
        self._check_insertion(parent, new_node)
        if new_node is old_node:
            return old_node

        use_overlay = self._needs_overlay(parent, new_node)
        nodes = self._collect(new_node)
        previous, following = old_node.previous_sibling, old_node.next_sibling

        if use_overlay:
            self._detach(parent, old_node, True)
            if nodes:
                self._attach(parent, nodes, following, True)
        else:
            self._physical_replace(parent, nodes, old_node)

        self._notify_removed(parent, old_node)
        self._nodes_were_added(parent, nodes)
        self._record_child_list(parent, added=nodes, removed=[old_node],
                                previous=previous, following=following)
        self._registry.add_transient(parent, old_node)
        self._node_was_removed(old_node)
        return old_node

    def set_text_content(self, node: Node, text: Optional[str]) -> None:
        """Replace all children of ``node`` with a single text node.

        An empty string leaves ``node`` without children. On a text or
        comment node this sets the character data instead.
        """
        if node.is_character_data:
            self.set_character_data(node, text)
            return
        if node.node_type is NodeType.DOCUMENT:
            return

        text = "" if text is None else str(text)
        removed = node.child_nodes
        use_overlay = self._physical.invalidate_composition(node)
        for child in removed:
            self._detach(node, child, use_overlay)

        added = [self.context.create_text(text)] if text else []
        if added:
            self._attach(node, added, None, use_overlay)
        if not removed and not added:
            return

        for child in removed:
            self._notify_removed(node, child)
        self._nodes_were_added(node, added)
        self._record_child_list(node, added=added, removed=removed)
        for child in removed:
            self._registry.add_transient(node, child)
            self._node_was_removed(child)

    def normalize(self, node: Node) -> None:
        """Merge adjacent text children and drop empty ones, recursively.

        Each merge and removal is an ordinary recorded mutation.
        """
        child = node.first_child
        while child is not None:
            following = child.next_sibling
            if child.node_type is not NodeType.TEXT:
                self.normalize(child)
                child = following
                continue

            if child.data == "":
                self.remove(node, child)
                child = following
                continue

            parts = []
            end = following
            while end is not None and end.node_type is NodeType.TEXT:
                parts.append(end.data)
                end = end.next_sibling
            if parts:
                self.set_character_data(child, child.data + "".join(parts))
                sibling = child.next_sibling
                while sibling is not end:
                    after = sibling.next_sibling
                    self.remove(node, sibling)
                    sibling = after
            child = end

    # Character data and attributes

    def set_character_data(self, node: Node, value: Optional[str]) -> None:
        """Change the data of a text or comment node."""
        if not node.is_character_data:
            raise OverlayTreeError(f"{node!r} does not hold character data")
        old_value = node.data
        node.data = "" if value is None else str(value)
        self._recorder.record(node, ChangeKind.CHARACTER_DATA, ChangeDescriptor(old_value=old_value))

    def set_attribute(self, node: Node, name: str, value: str, namespace: Optional[str] = None) -> None:
        """Set an attribute, recording its previous value."""
        key = (namespace, name)
        old_value = node.attributes.get(key)
        node.attributes[key] = str(value)
        self._record_attribute(node, name, namespace, old_value)

    def remove_attribute(self, node: Node, name: str, namespace: Optional[str] = None) -> bool:
        """Remove an attribute if present.

        Returns:
            True if the attribute existed (and a record was emitted)
        """
        key = (namespace, name)
        if key not in node.attributes:
            return False
        old_value = node.attributes.pop(key)
        self._record_attribute(node, name, namespace, old_value)
        return True

    # Internals

    def _check_insertion(self, parent: Node, node: Node) -> None:
        for candidate in (parent, node):
            if candidate.context is not self.context:
                raise WrongContextError(f"{candidate!r} belongs to a different tree context")
        if parent.node_type not in PARENT_TYPES:
            raise HierarchyRequestError(f"{parent!r} cannot have children")
        if node.node_type is NodeType.DOCUMENT:
            raise HierarchyRequestError("A document node cannot be inserted")
        if node is parent:
            raise HierarchyRequestError(f"{node!r} cannot be inserted into itself")
        scope = node.owner_scope
        if scope is not None and scope.is_root(node):
            raise HierarchyRequestError(f"{node!r} is a scope root and cannot be inserted")

    def _needs_overlay(self, parent: Node, node: Node) -> bool:
        if self._physical.invalidate_composition(parent):
            return True
        old_parent = node.parent
        return (node.node_type is not NodeType.DOCUMENT_FRAGMENT
                and old_parent is not None
                and self._physical.invalidate_composition(old_parent))

    def _collect(self, node: Node) -> List[Node]:
        """Free the node(s) an insertion will place.

        Fragment children are taken out of the fragment with a single
        removal record against the fragment.
        """
        if node.node_type is not NodeType.DOCUMENT_FRAGMENT:
            if node.parent is not None:
                self.remove(node.parent, node)
            return [node]

        nodes = node.child_nodes
        if not nodes:
            return nodes
        use_overlay = self._physical.invalidate_composition(node)
        for child in nodes:
            self._detach(node, child, use_overlay)
        self._record_child_list(node, removed=nodes)
        for child in nodes:
            self._registry.add_transient(node, child)
            self._node_was_removed(child)
        return nodes

    def _detach(self, parent: Node, node: Node, use_overlay: bool) -> None:
        if use_overlay:
            overlay.materialize_children(parent)
            self._physical_remove(node)
            overlay.unlink_node(parent, node)
        else:
            if overlay.has_overlaid_children(parent):
                overlay.clear_child_nodes(parent)
            self._physical_remove(node)
            overlay.release(node)
        overlay.collapse(node)

    def _attach(self, parent: Node, nodes: Sequence[Node], before: Optional[Node], use_overlay: bool) -> None:
        if not use_overlay:
            if overlay.has_overlaid_children(parent):
                overlay.clear_child_nodes(parent)
            for node in nodes:
                self._physical.insert_before(parent, node, before)
            return

        overlay.materialize_children(parent)
        previous = before.previous_sibling if before is not None else parent.last_child
        overlay.link_nodes(parent, nodes, previous, before)

        physical_parent = self._physical.get_parent(before) if before is not None else parent
        if physical_parent is None:
            logger.debug("Reference node %r is not rendered; skipping physical insert", before)
            return
        for node in nodes:
            self._physical.insert_before(physical_parent, node, before)

    def _physical_remove(self, node: Node) -> None:
        physical_parent = self._physical.get_parent(node)
        if physical_parent is not None:
            self._physical.remove_child(physical_parent, node)

    def _physical_replace(self, parent: Node, nodes: Sequence[Node], old_node: Node) -> None:
        if overlay.has_overlaid_children(parent):
            overlay.clear_child_nodes(parent)
        if len(nodes) == 1:
            self._physical.replace_child(parent, nodes[0], old_node)
        else:
            for node in nodes:
                self._physical.insert_before(parent, node, old_node)
            self._physical.remove_child(parent, old_node)
        overlay.release(old_node)
        overlay.collapse(old_node)

    def _nodes_were_added(self, parent: Node, nodes: Sequence[Node]) -> None:
        scope = parent.owner_scope
        if scope is not None and nodes:
            scope.nodes_were_added(nodes)
        for node in nodes:
            self._registry.cache.invalidate_subtree(node)

    def _notify_removed(self, parent: Node, node: Node) -> None:
        scope = parent.owner_scope
        if scope is not None:
            scope.node_was_removed(node)

    def _node_was_removed(self, node: Node) -> None:
        cache = self._registry.cache
        for member in node.iter_subtree():
            member.owner_scope = None
            cache.invalidate(member)

    def _record_child_list(self, target: Node, added: Sequence[Node] = (), removed: Sequence[Node] = (),
                           previous: Optional[Node] = None, following: Optional[Node] = None) -> None:
        self._recorder.record(target, ChangeKind.CHILD_LIST, ChangeDescriptor(
            added_nodes=tuple(added),
            removed_nodes=tuple(removed),
            previous_sibling=previous,
            next_sibling=following,
        ))

    def _record_attribute(self, node: Node, name: str, namespace: Optional[str],
                          old_value: Optional[str]) -> None:
        self._recorder.record(node, ChangeKind.ATTRIBUTES, ChangeDescriptor(
            attribute_name=name,
            attribute_namespace=namespace,
            old_value=old_value,
        ))
