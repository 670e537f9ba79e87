"""Error hierarchy for OverlayTreeLib.

All library errors inherit from OverlayTreeError so callers can catch
them in one place. Every error is raised synchronously by the call that
caused it; nothing is deferred to the notification flush.
"""


class OverlayTreeError(Exception):
    """Base error for all OverlayTreeLib operations."""
    pass


class ConfigurationError(OverlayTreeError, ValueError):
    """Raised when observer options or a context configuration are invalid.

    The subscription (or context) is never created or modified when this
    is raised.
    """
    pass


class NotFoundError(OverlayTreeError, LookupError):
    """Raised when a node is not a child of the parent it was given with.

    Used by remove/replace (node's logical parent mismatch) and by insert
    (reference node is not a child of the parent). No mutation is performed
    and no change record is emitted.
    """
    pass


class WrongContextError(OverlayTreeError):
    """Raised when nodes from two different tree contexts are combined."""
    pass


class HierarchyRequestError(OverlayTreeError):
    """Raised when a node can never be placed where it was asked to go."""
    pass
