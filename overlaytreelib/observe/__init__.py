"""Observation engine for OverlayTreeLib.

Registrations, change records, the recorder that fans records out to
observers, and the scheduler that delivers them at the end of a turn.
"""

from .cache import RegistrationCache
from .error_policies import (
    CollectErrorsPolicy,
    ContinueOnErrorsPolicy,
    ErrorPolicy,
    FailFastPolicy,
    ThresholdPolicy,
)
from .observer import ObserverHandle
from .recorder import ChangeRecorder
from .records import ChangeDescriptor, ChangeKind, ChangeRecord
from .registry import ObservationRegistry, Registration
from .scheduler import ManualTurn, NotificationScheduler, SchedulerState

__all__ = [
    "RegistrationCache",
    "ErrorPolicy",
    "FailFastPolicy",
    "ContinueOnErrorsPolicy",
    "CollectErrorsPolicy",
    "ThresholdPolicy",
    "ObserverHandle",
    "ChangeRecorder",
    "ChangeDescriptor",
    "ChangeKind",
    "ChangeRecord",
    "ObservationRegistry",
    "Registration",
    "ManualTurn",
    "NotificationScheduler",
    "SchedulerState",
]
