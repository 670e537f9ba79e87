"""
Callback error policies for OverlayTreeLib.

Observer callbacks are user code. This module provides the Policy pattern
used by the NotificationScheduler to decide what a failing callback means
for the rest of a delivery: whether it is logged, collected, tolerated up
to a limit, or propagated.

A policy that raises from ``handle`` does not interrupt the delivery pass
in progress: the scheduler finishes delivering to the remaining observers
and re-raises the first propagated error afterwards, so no other observer
loses its batch.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

if TYPE_CHECKING:
    from .observer import ObserverHandle
    from .records import ChangeRecord

logger = logging.getLogger(__name__)


class ErrorPolicy(ABC):
    """
    Base class for callback error policies.

    Subclasses implement different strategies for handling exceptions
    raised by observer callbacks during a flush.
    """

    @abstractmethod
    def handle(self, error: Exception, observer: 'ObserverHandle',
               records: Sequence['ChangeRecord']) -> None:
        """
        Handle an exception raised by an observer callback.

        Args:
            error: The exception that was raised
            observer: The observer whose callback failed
            records: The batch that was being delivered

        Raises:
            Any exception to propagate the failure out of the flush.
        """
        pass

    @staticmethod
    def describe(error: Exception, observer: 'ObserverHandle',
                 records: Sequence['ChangeRecord']) -> Dict[str, Any]:
        """Build the error record kept by collecting policies."""
        return {
            'observer': observer.uid,
            'records': len(records),
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error),
        }


class FailFastPolicy(ErrorPolicy):
    """
    Policy that propagates any callback error out of the flush.

    Useful in tests and in hosts where a failing observer indicates a bug
    that must surface immediately.
    """

    def handle(self, error: Exception, observer: 'ObserverHandle',
               records: Sequence['ChangeRecord']) -> None:
        """Re-raise the error."""
        raise error


class ContinueOnErrorsPolicy(ErrorPolicy):
    """
    Policy that logs callback errors and keeps delivering.

    This is the default. Errors are collected for later inspection.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, log a warning for every failing callback
        """
        self.errors: List[Dict[str, Any]] = []
        self.verbose = verbose

    def handle(self, error: Exception, observer: 'ObserverHandle',
               records: Sequence['ChangeRecord']) -> None:
        self.errors.append(self.describe(error, observer, records))
        if self.verbose:
            logger.warning("Observer %d callback failed on a batch of %d record(s): %s",
                           observer.uid, len(records), error, exc_info=error)

    def get_statistics(self) -> dict:
        """
        Get statistics about callback errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        return {
            'total_errors': len(self.errors),
            'failing_observers': len({e['observer'] for e in self.errors}),
            'errors': self.errors,
        }


class CollectErrorsPolicy(ErrorPolicy):
    """
    Policy that collects all errors without logging.

    Similar to ContinueOnErrorsPolicy but silent. Useful for presenting
    every failure at the end of a batch job.
    """

    def __init__(self):
        self.errors: List[Dict[str, Any]] = []

    def handle(self, error: Exception, observer: 'ObserverHandle',
               records: Sequence['ChangeRecord']) -> None:
        """Silently collect the error."""
        self.errors.append(self.describe(error, observer, records))


class ThresholdPolicy(ErrorPolicy):
    """
    Policy that tolerates errors up to a threshold, then fails.

    Useful when an occasional failing observer is acceptable but repeated
    failures point to a systemic problem.
    """

    def __init__(self, max_errors: int = 10, verbose: bool = True):
        """
        Initialize threshold policy.

        Args:
            max_errors: Maximum errors to tolerate before failing
            verbose: If True, log a warning for tolerated errors
        """
        self.max_errors = max_errors
        self.error_count = 0
        self.verbose = verbose
        self.errors: List[Exception] = []

    def handle(self, error: Exception, observer: 'ObserverHandle',
               records: Sequence['ChangeRecord']) -> None:
        """Tolerate the error if under threshold, otherwise raise."""
        self.error_count += 1
        self.errors.append(error)

        if self.error_count > self.max_errors:
            raise RuntimeError(f"Observer error threshold exceeded ({self.max_errors} errors)") from error

        if self.verbose:
            logger.warning("[%d/%d] Observer %d callback failed: %s",
                           self.error_count, self.max_errors, observer.uid, error)
