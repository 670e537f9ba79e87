"""TreeContext: the service object that ties a tree and its observers together.

A context owns the physical adapter, the registration table and its cache,
the recorder, the scheduler and the mutator. Nodes created by a context can
only be combined with nodes of the same context.
"""

import logging
from typing import Optional

from .config import ContextConfig
from .core.adapter import InMemoryPhysicalTree, PhysicalTreeAdapter
from .core.node import Node, NodeType
from .core.scope import TreeScope
from .errors import ConfigurationError, HierarchyRequestError, WrongContextError
from .mutation.mutator import TreeMutator
from .observe.cache import RegistrationCache
from .observe.error_policies import ErrorPolicy
from .observe.observer import ObserverCallback, ObserverHandle
from .observe.recorder import ChangeRecorder
from .observe.registry import ObservationRegistry
from .observe.scheduler import NotificationScheduler

logger = logging.getLogger(__name__)


class TreeContext:
    """Owns one tree, its observation engine and its mutation entry point.

    Example:
        context = TreeContext()
        root = context.create_element('root')
        context.mutator.append(context.document, root)

        observer = context.create_observer(lambda records, obs: print(records))
        observer.subscribe(root, childList=True, subtree=True)
        context.mutator.append(root, context.create_text('hello'))
        context.flush()  # the callback runs here
    """

    def __init__(self,
                 physical: Optional[PhysicalTreeAdapter] = None,
                 turn=None,
                 error_policy: Optional[ErrorPolicy] = None,
                 config: Optional[ContextConfig] = None):
        """Initialize the context.

        Args:
            physical: Adapter for the underlying tree (InMemoryPhysicalTree by default)
            turn: End-of-turn strategy for deliveries (ManualTurn by default,
                see ``overlaytreelib.aio.AsyncioTurn`` for asyncio hosts)
            error_policy: How observer callback failures are handled
            config: Tuning options

        Raises:
            ConfigurationError: If ``config`` is invalid
        """
        self.config = config or ContextConfig()
        errors = self.config.validate()
        if errors:
            raise ConfigurationError(f"Invalid context configuration: {'; '.join(errors)}")

        self.physical = physical or InMemoryPhysicalTree()
        self.cache = RegistrationCache(
            max_entries=self.config.cache_max_entries,
            enabled=self.config.cache_enabled,
        )
        self.registry = ObservationRegistry(
            self.cache,
            invalidate_on_unsubscribe=self.config.invalidate_on_unsubscribe,
        )
        self.scheduler = NotificationScheduler(self.registry, turn=turn, error_policy=error_policy)
        self.recorder = ChangeRecorder(
            self.registry,
            self.scheduler,
            share_records=self.config.share_records,
        )
        self.mutator = TreeMutator(self)
        self.document = Node(self, NodeType.DOCUMENT)

    # Node factories

    def create_element(self, name: str) -> Node:
        return Node(self, NodeType.ELEMENT, name=name)

    def create_text(self, data: str = "") -> Node:
        return Node(self, NodeType.TEXT, data=data)

    def create_comment(self, data: str = "") -> Node:
        return Node(self, NodeType.COMMENT, data=data)

    def create_fragment(self) -> Node:
        return Node(self, NodeType.DOCUMENT_FRAGMENT)

    # Observation

    def create_observer(self, callback: ObserverCallback) -> ObserverHandle:
        """Create an observer whose callback receives ``(records, observer)``."""
        return ObserverHandle(self, callback)

    def flush(self) -> int:
        """Deliver pending records now.

        With the default ManualTurn this is how the host ends a turn. With
        other turns it can still be called to deliver early.

        Returns:
            Number of callbacks invoked
        """
        self.scheduler.turn.cancel()
        return self.scheduler.flush()

    # Composition

    def attach_scope(self, host: Node) -> TreeScope:
        """Attach a composition scope to ``host``.

        The host's children and every node inside the scope are handled on
        the overlay path from then on.

        Raises:
            WrongContextError: If ``host`` belongs to another context
            HierarchyRequestError: If ``host`` is not an element or already hosts a scope
        """
        if host.context is not self:
            raise WrongContextError(f"{host!r} belongs to a different tree context")
        if host.node_type is not NodeType.ELEMENT:
            raise HierarchyRequestError(f"{host!r} cannot host a scope")
        if host.shadow_scope is not None:
            raise HierarchyRequestError(f"{host!r} already hosts a scope")

        scope = TreeScope(self.create_fragment(), host)
        host.shadow_scope = scope
        self.physical.invalidate_composition(host)
        logger.debug("Attached scope to %r", host)
        return scope

    def stats(self) -> dict:
        """Registration, cache and delivery statistics."""
        return {
            'registry': self.registry.stats(),
            'cache': self.cache.get_stats(),
            'records_created': self.recorder.records_created,
            'flushes': self.scheduler.flush_count,
            'deliveries': self.scheduler.delivery_count,
        }
