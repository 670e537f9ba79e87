"""Change records.

A ChangeDescriptor is what the TreeMutator reports about one mutation. It
always carries the old value; the ChangeRecorder decides per observer
whether the delivered ChangeRecord includes it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..core.node import Node


class ChangeKind(Enum):
    """Kind of change a record describes."""
    CHILD_LIST = "childList"          # Structural change
    ATTRIBUTES = "attributes"         # Attribute change
    CHARACTER_DATA = "characterData"  # Text change


@dataclass(frozen=True)
class ChangeDescriptor:
    """Raw description of a single mutation, as produced by the mutator."""
    added_nodes: Tuple[Node, ...] = ()
    removed_nodes: Tuple[Node, ...] = ()
    previous_sibling: Optional[Node] = None
    next_sibling: Optional[Node] = None
    attribute_name: Optional[str] = None
    attribute_namespace: Optional[str] = None
    old_value: Optional[str] = None


@dataclass(frozen=True)
class ChangeRecord:
    """Immutable description of one logical mutation.

    The same instance may be delivered to several observers. Records
    compare by value, so a context configured without record sharing still
    delivers equal records.
    """
    type: ChangeKind
    target: Node
    added_nodes: Tuple[Node, ...] = ()
    removed_nodes: Tuple[Node, ...] = ()
    previous_sibling: Optional[Node] = None
    next_sibling: Optional[Node] = None
    attribute_name: Optional[str] = None
    attribute_namespace: Optional[str] = None
    old_value: Optional[str] = None

    @classmethod
    def from_descriptor(cls, kind: ChangeKind, target: Node,
                        descriptor: ChangeDescriptor, include_old_value: bool) -> 'ChangeRecord':
        """Build a record, dropping the old value unless it was asked for.

        Args:
            kind: Kind of change
            target: Node the change happened on
            descriptor: Mutation details from the mutator
            include_old_value: Whether to keep ``descriptor.old_value``

        Returns:
            A new ChangeRecord
        """
        return cls(
            type=kind,
            target=target,
            added_nodes=descriptor.added_nodes,
            removed_nodes=descriptor.removed_nodes,
            previous_sibling=descriptor.previous_sibling,
            next_sibling=descriptor.next_sibling,
            attribute_name=descriptor.attribute_name,
            attribute_namespace=descriptor.attribute_namespace,
            old_value=descriptor.old_value if include_old_value else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the record using the public camelCase field names."""
        return {
            'type': self.type.value,
            'target': self.target,
            'addedNodes': list(self.added_nodes),
            'removedNodes': list(self.removed_nodes),
            'previousSibling': self.previous_sibling,
            'nextSibling': self.next_sibling,
            'attributeName': self.attribute_name,
            'attributeNamespace': self.attribute_namespace,
            'oldValue': self.old_value,
        }
