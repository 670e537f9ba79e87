"""Node abstraction for OverlayTreeLib.

The Node is intentionally kept simple - it's a data container with two
sets of tree pointers. Mutation logic lives in the TreeMutator and the
physical tree is owned by a PhysicalTreeAdapter, which is what lets the
logical (composed) view diverge from the physical one.

Pointer resolution:
- Physical pointers (``_phys_*``) are maintained by the physical adapter.
- Logical pointers (``_parent``, ``_first``, ``_last``, ``_next``,
  ``_prev``) default to UNSET. When set they override the physical value.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

if TYPE_CHECKING:
    from ..context import TreeContext
    from .scope import TreeScope


class _Unset:
    """Marker type for a logical pointer that has not been overridden."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

LOGICAL_FIELDS = ('_parent', '_first', '_last', '_next', '_prev')


class NodeType(Enum):
    """Kinds of node the tree can hold."""
    ELEMENT = 1
    TEXT = 3
    COMMENT = 8
    DOCUMENT = 9
    DOCUMENT_FRAGMENT = 11


CHARACTER_DATA_TYPES = frozenset({NodeType.TEXT, NodeType.COMMENT})


class Node:
    """A node in the dual-pointer tree.

    Identity is object identity: two nodes are equal only if they are the
    same object, which makes nodes usable as keys in the registration and
    cache side tables.

    Attributes:
        context: The TreeContext that owns this node
        node_type: The NodeType of this node
        name: Tag name for elements, ``#text`` etc. for other kinds
        data: Character data for text and comment nodes
        attributes: Attribute values keyed by ``(namespace, name)``
        owner_scope: Composition scope the node currently belongs to
        shadow_scope: Composition scope hosted by this node, if any
    """

    def __init__(self, context: 'TreeContext', node_type: NodeType,
                 name: Optional[str] = None, data: Optional[str] = None):
        self.context = context
        self.node_type = node_type
        self.name = name if name is not None else _default_name(node_type)
        self.data = data if node_type in CHARACTER_DATA_TYPES else None
        if node_type in CHARACTER_DATA_TYPES and self.data is None:
            self.data = ""
        self.attributes: Dict[Tuple[Optional[str], str], str] = {}
        self.owner_scope: Optional['TreeScope'] = None
        self.shadow_scope: Optional['TreeScope'] = None

        # Physical pointers (owned by the physical adapter)
        self._phys_parent: Optional['Node'] = None
        self._phys_first: Optional['Node'] = None
        self._phys_last: Optional['Node'] = None
        self._phys_next: Optional['Node'] = None
        self._phys_prev: Optional['Node'] = None

        # Logical overlay pointers
        self._parent: Any = UNSET
        self._first: Any = UNSET
        self._last: Any = UNSET
        self._next: Any = UNSET
        self._prev: Any = UNSET

    # Pointer resolution

    @property
    def parent(self) -> Optional['Node']:
        """Logical parent, falling back to the physical parent."""
        return self._phys_parent if self._parent is UNSET else self._parent

    @property
    def first_child(self) -> Optional['Node']:
        return self._phys_first if self._first is UNSET else self._first

    @property
    def last_child(self) -> Optional['Node']:
        return self._phys_last if self._last is UNSET else self._last

    @property
    def next_sibling(self) -> Optional['Node']:
        return self._phys_next if self._next is UNSET else self._next

    @property
    def previous_sibling(self) -> Optional['Node']:
        return self._phys_prev if self._prev is UNSET else self._prev

    @property
    def is_overlaid(self) -> bool:
        """True once any logical pointer overrides the physical tree."""
        return any(getattr(self, name) is not UNSET for name in LOGICAL_FIELDS)

    # Convenience accessors

    @property
    def child_nodes(self) -> List['Node']:
        """Snapshot of the logical children in order."""
        return list(self.iter_children())

    def iter_children(self) -> Iterator['Node']:
        child = self.first_child
        while child is not None:
            yield child
            child = child.next_sibling

    def has_child_nodes(self) -> bool:
        return self.first_child is not None

    def iter_ancestors(self) -> Iterator['Node']:
        """Yield logical ancestors, nearest first."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_subtree(self) -> Iterator['Node']:
        """Yield this node and its logical descendants in document order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.child_nodes))

    def contains(self, other: Optional['Node']) -> bool:
        """Check whether ``other`` is this node or a logical descendant."""
        node = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    @property
    def is_character_data(self) -> bool:
        return self.node_type in CHARACTER_DATA_TYPES

    @property
    def text_content(self) -> Optional[str]:
        """Concatenated text of the logical subtree (comments excluded).

        Returns None for documents, matching the usual DOM behaviour.
        """
        if self.node_type is NodeType.DOCUMENT:
            return None
        if self.is_character_data:
            return self.data
        parts = []
        for child in self.iter_children():
            if child.node_type is not NodeType.COMMENT:
                parts.append(child.text_content or "")
        return "".join(parts)

    def get_attribute(self, name: str, namespace: Optional[str] = None) -> Optional[str]:
        return self.attributes.get((namespace, name))

    def has_attribute(self, name: str, namespace: Optional[str] = None) -> bool:
        return (namespace, name) in self.attributes

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        if self.is_character_data:
            return f"{self.__class__.__name__}({self.name}, data={self.data!r})"
        return f"{self.__class__.__name__}({self.name})"


def _default_name(node_type: NodeType) -> str:
    return {
        NodeType.TEXT: '#text',
        NodeType.COMMENT: '#comment',
        NodeType.DOCUMENT: '#document',
        NodeType.DOCUMENT_FRAGMENT: '#document-fragment',
    }.get(node_type, '')
