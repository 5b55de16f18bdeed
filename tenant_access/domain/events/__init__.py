"""Domain events for the trial lifecycle."""

from .base import DomainEvent, IDomainEventPublisher
from .trial_events import (
    TrialConvertedEvent,
    TrialExpiredEvent,
    TrialExtendedEvent,
    TrialStartedEvent,
    TrialStatusCorrectedEvent,
)

__all__ = [
    "DomainEvent",
    "IDomainEventPublisher",
    "TrialConvertedEvent",
    "TrialExpiredEvent",
    "TrialExtendedEvent",
    "TrialStartedEvent",
    "TrialStatusCorrectedEvent",
]
