"""PhysicalTreeAdapter abstraction for OverlayTreeLib.

The physical tree is owned by a host collaborator. The core never edits
physical pointers itself: it asks the adapter to perform the primitive
insert/remove/replace operations and reconciles the results against the
logical overlay. Swapping the adapter lets the same core drive any
underlying tree (an in-memory tree, a foreign DOM, a widget hierarchy).
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from ..errors import NotFoundError
from .node import Node


class PhysicalTreeAdapter(ABC):
    """Abstract adapter for the physical (underlying) tree.

    Adapters implement the primitive operations plus composition-boundary
    resolution, which the TreeMutator uses to decide between the direct
    physical path and the overlay path.
    """

    @abstractmethod
    def insert_before(self, parent: Node, node: Node, ref: Optional[Node]) -> None:
        """Physically insert ``node`` into ``parent`` before ``ref``.

        A node that already has a physical parent is moved. The mutator
        never passes document fragments; it unpacks them first.

        Args:
            parent: The physical parent
            node: The node to insert
            ref: Physical child of ``parent`` to insert before, or None to append
        """
        pass

    @abstractmethod
    def remove_child(self, parent: Node, child: Node) -> None:
        """Physically remove ``child`` from ``parent``.

        Args:
            parent: The physical parent
            child: The child to detach
        """
        pass

    def replace_child(self, parent: Node, new_node: Node, old_node: Node) -> None:
        """Physically replace ``old_node`` with ``new_node``.

        Default implementation composes insert_before and remove_child.
        """
        self.insert_before(parent, new_node, old_node)
        self.remove_child(parent, old_node)

    def get_parent(self, node: Node) -> Optional[Node]:
        """Get the physical parent of a node."""
        return node._phys_parent

    def get_children(self, node: Node) -> Iterator[Node]:
        """Iterate the physical children of a node."""
        child = node._phys_first
        while child is not None:
            yield child
            child = child._phys_next

    def invalidate_composition(self, node: Node) -> bool:
        """Report whether ``node``'s children take part in composition.

        When this returns True the mutator keeps the logical overlay
        authoritative for the node's children, because the physical
        placement of those children is decided by a renderer. The default
        implementation treats scope hosts and scope members as affected
        and marks their scope dirty.

        Args:
            node: Parent (or old parent) involved in a mutation

        Returns:
            True if the overlay path must be used
        """
        scope = node.shadow_scope or node.owner_scope
        if scope is None:
            return False
        scope.invalidate()
        return True


class InMemoryPhysicalTree(PhysicalTreeAdapter):
    """Physical tree kept directly in the nodes' ``_phys_*`` pointers.

    This is the adapter used when no host tree exists: the physical tree
    is just another set of pointers on the same Node objects.
    """

    def insert_before(self, parent: Node, node: Node, ref: Optional[Node]) -> None:
        if ref is not None and ref._phys_parent is not parent:
            raise NotFoundError(f"{ref!r} is not a physical child of {parent!r}")

        if node is ref:
            return
        self._link(parent, node, ref)

    def remove_child(self, parent: Node, child: Node) -> None:
        if child._phys_parent is not parent:
            raise NotFoundError(f"{child!r} is not a physical child of {parent!r}")
        self._unlink(child)

    def _link(self, parent: Node, node: Node, ref: Optional[Node]) -> None:
        if node._phys_parent is not None:
            self._unlink(node)

        prev = ref._phys_prev if ref is not None else parent._phys_last
        node._phys_parent = parent
        node._phys_prev = prev
        node._phys_next = ref

        if prev is None:
            parent._phys_first = node
        else:
            prev._phys_next = node
        if ref is None:
            parent._phys_last = node
        else:
            ref._phys_prev = node

    def _unlink(self, node: Node) -> None:
        parent = node._phys_parent
        prev, nxt = node._phys_prev, node._phys_next

        if prev is None:
            parent._phys_first = nxt
        else:
            prev._phys_next = nxt
        if nxt is None:
            parent._phys_last = prev
        else:
            nxt._phys_prev = prev

        node._phys_parent = node._phys_prev = node._phys_next = None
