"""Observation registry.

Keeps the side table of registrations keyed by node identity, answers
"which observers care about this change" by walking the node and its
ancestors (memoized through the RegistrationCache), and manages transient
registrations on removed nodes.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from ..config import ObserverOptions
from ..core.node import Node
from .cache import RegistrationCache
from .records import ChangeDescriptor, ChangeKind

if TYPE_CHECKING:
    from .observer import ObserverHandle

logger = logging.getLogger(__name__)

Reachable = Tuple[Tuple[Node, 'Registration'], ...]


class Registration:
    """One observer watching one target with one set of options.

    A registration is also attached, as a transient side-registration, to
    nodes removed from beneath its target while ``subtree`` is set. Those
    side-registrations expire at the observer's next delivery.
    """

    def __init__(self, observer: 'ObserverHandle', target: Node, options: ObserverOptions):
        self.observer = observer
        self.target = target
        self.options = options
        self.transient_nodes: List[Node] = []

    def __repr__(self) -> str:
        return (f"Registration(observer={self.observer.uid}, target={self.target!r}, "
                f"transient={len(self.transient_nodes)})")


def options_match(options: ObserverOptions, kind: ChangeKind, descriptor: ChangeDescriptor) -> bool:
    """Check whether options accept a change of ``kind``.

    For attribute changes with an attribute filter, the attribute name must
    be listed and the namespace must be None.
    """
    if kind is ChangeKind.CHILD_LIST:
        return options.child_list
    if kind is ChangeKind.CHARACTER_DATA:
        return options.character_data
    if not options.attributes:
        return False
    if options.attribute_filter is not None:
        if descriptor.attribute_namespace is not None:
            return False
        return descriptor.attribute_name in options.attribute_filter
    return True


def wants_old_value(options: ObserverOptions, kind: ChangeKind) -> bool:
    if kind is ChangeKind.ATTRIBUTES:
        return options.attribute_old_value
    if kind is ChangeKind.CHARACTER_DATA:
        return options.character_data_old_value
    return False


class ObservationRegistry:
    """Side table of registrations with ancestor-chain lookup.

    Example:
        registry = ObservationRegistry(RegistrationCache())
        registry.subscribe(observer, node, ObserverOptions(child_list=True))
        interested = registry.collect_interested(node, ChangeKind.CHILD_LIST, descriptor)
    """

    def __init__(self, cache: RegistrationCache, invalidate_on_unsubscribe: bool = True):
        """Initialize an empty registry.

        Args:
            cache: Cache used to memoize ancestor lookups
            invalidate_on_unsubscribe: Drop cached lookups when registrations
                are removed. When False, lookups computed while a registration
                existed can keep returning it until another invalidation.
        """
        self._table: Dict[Node, List[Registration]] = {}
        self._cache = cache
        self.invalidate_on_unsubscribe = invalidate_on_unsubscribe

    @property
    def cache(self) -> RegistrationCache:
        return self._cache

    def registrations_for(self, node: Node) -> List[Registration]:
        """Return a copy of the registrations attached directly to ``node``."""
        return list(self._table.get(node, ()))

    def find(self, observer: 'ObserverHandle', target: Node) -> Optional[Registration]:
        """Find the permanent registration of ``observer`` on ``target``."""
        for registration in self._table.get(target, ()):
            if registration.observer is observer and registration.target is target:
                return registration
        return None

    def subscribe(self, observer: 'ObserverHandle', target: Node, options: ObserverOptions) -> Registration:
        """Register ``observer`` on ``target`` or update its existing options.

        Args:
            observer: The observer handle
            target: Node to observe
            options: Validated options

        Returns:
            The new or updated Registration
        """
        registration = self.find(observer, target)
        if registration is not None:
            self._remove_transients(registration)
            registration.options = options
            self._cache.invalidate_subtree(target)
            return registration

        registration = Registration(observer, target, options)
        self._table.setdefault(target, []).append(registration)
        observer._targets.append(target)
        self._cache.invalidate_subtree(target)
        logger.debug("Observer %d now watching %r", observer.uid, target)
        return registration

    def unsubscribe(self, observer: 'ObserverHandle') -> int:
        """Remove every registration owned by ``observer``.

        Transient side-registrations are removed along with the permanent
        ones.

        Returns:
            Number of permanent registrations removed
        """
        removed = 0
        for target in observer._targets:
            registration = self.find(observer, target)
            if registration is None:
                continue
            self._remove_transients(registration)
            self._detach(target, registration)
            if self.invalidate_on_unsubscribe:
                self._cache.invalidate_subtree(target)
            removed += 1
        observer._targets.clear()
        return removed

    def reachable(self, node: Node) -> Reachable:
        """Registrations on ``node`` and its ancestors, nearest first.

        Misses are computed by walking up to the nearest cached ancestor
        and then filling the cache back down the chain.
        """
        chain = []
        base: Reachable = ()
        current = node
        while current is not None:
            cached = self._cache.get(current)
            if cached is not None:
                base = cached
                break
            chain.append(current)
            current = current.parent

        for member in reversed(chain):
            own = tuple((member, registration) for registration in self._table.get(member, ()))
            base = own + base
            self._cache.put(member, base)
        return base

    def collect_interested(self, target: Node, kind: ChangeKind,
                           descriptor: ChangeDescriptor) -> Dict['ObserverHandle', bool]:
        """Find observers interested in a change.

        Args:
            target: Node the change happened on
            kind: Kind of change
            descriptor: Mutation details (attribute name/namespace matter)

        Returns:
            Ordered mapping of observer to "wants the old value"
        """
        if not self._table:
            return {}

        interested: Dict['ObserverHandle', bool] = {}
        for owner, registration in self.reachable(target):
            options = registration.options
            if owner is not target and not options.subtree:
                continue
            if not options_match(options, kind, descriptor):
                continue
            observer = registration.observer
            interested[observer] = interested.get(observer, False) or wants_old_value(options, kind)
        return interested

    def add_transient(self, ancestor: Optional[Node], node: Node) -> int:
        """Attach transient registrations for a node removed from ``ancestor``.

        Every subtree-scoped registration found on ``ancestor`` or its
        ancestors gets a side-registration on ``node`` until the owning
        observer's next delivery.

        Returns:
            Number of transient registrations attached
        """
        if not self._table:
            return 0

        added = 0
        current = ancestor
        while current is not None:
            for registration in list(self._table.get(current, ())):
                if registration.options.subtree and self._add_transient(registration, node):
                    added += 1
            current = current.parent

        if added:
            self._cache.invalidate_subtree(node)
        return added

    def clear_transients(self, observer: 'ObserverHandle') -> None:
        """Remove all transient side-registrations owned by ``observer``."""
        for target in observer._targets:
            registration = self.find(observer, target)
            if registration is not None:
                self._remove_transients(registration)

    def forget(self, node: Node) -> None:
        """Prune a destroyed node from the side table.

        Permanent registrations on the node are dropped from their
        observers; transient ones just forget the node.
        """
        for registration in self._table.pop(node, ()):
            if registration.target is node:
                self._remove_transients(registration)
                if node in registration.observer._targets:
                    registration.observer._targets.remove(node)
            elif node in registration.transient_nodes:
                registration.transient_nodes.remove(node)
        self._cache.invalidate_subtree(node)

    def stats(self) -> Dict[str, int]:
        """Return counts describing the registration table."""
        registrations = [r for regs in self._table.values() for r in regs]
        permanent = sum(1 for node, regs in self._table.items() for r in regs if r.target is node)
        return {
            'nodes': len(self._table),
            'registrations': permanent,
            'transient': len(registrations) - permanent,
        }

    def _add_transient(self, registration: Registration, node: Node) -> bool:
        if node is registration.target:
            return False
        registrations = self._table.setdefault(node, [])
        if registration in registrations:
            return False
        registrations.append(registration)
        registration.transient_nodes.append(node)
        return True

    def _remove_transients(self, registration: Registration) -> None:
        nodes = registration.transient_nodes
        registration.transient_nodes = []
        for node in nodes:
            self._detach(node, registration)
            self._cache.invalidate_subtree(node)

    def _detach(self, node: Node, registration: Registration) -> None:
        registrations = self._table.get(node)
        if not registrations:
            return
        if registration in registrations:
            registrations.remove(registration)
        if not registrations:
            del self._table[node]
