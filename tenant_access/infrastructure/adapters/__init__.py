"""Infrastructure adapters implementing domain ports."""

from .event_publisher_adapter import LoggingEventPublisher
from .handoff_store import MemoryHandoffStore
from .identity_adapter import LocalIdentityProvider
from .memory_record_store import MemoryRecordStore
from .notification_adapter import LoggingTrialNotifier, WebhookTrialNotifier
from .postgres_record_store import PostgresRecordStore

__all__ = [
    "LocalIdentityProvider",
    "LoggingEventPublisher",
    "LoggingTrialNotifier",
    "MemoryHandoffStore",
    "MemoryRecordStore",
    "PostgresRecordStore",
    "WebhookTrialNotifier",
]
