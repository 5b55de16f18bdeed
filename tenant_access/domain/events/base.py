"""Base class and publisher port for access-engine domain events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict
from uuid import UUID, uuid4

from tenant_access.domain.services.time_normalizer import current_millis


@dataclass(kw_only=True)
class DomainEvent:
    """
    A change to a tenant's trial or subscription state.

    ``occurred_at`` is epoch milliseconds like every other instant in the
    engine; the event type is the concrete class name.
    """

    tenant_id: str
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: int = field(default_factory=current_millis)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "tenant_id": self.tenant_id,
            "occurred_at": self.occurred_at,
            "metadata": self.metadata,
        }


class IDomainEventPublisher(ABC):
    """Port for handing events to whoever listens."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> bool:
        pass

    @abstractmethod
    async def publish_batch(self, events: list[DomainEvent]) -> bool:
        pass


__all__ = ["DomainEvent", "IDomainEventPublisher"]
