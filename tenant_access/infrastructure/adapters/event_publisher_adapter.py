"""Event publisher adapter for domain events."""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, List

import structlog

from tenant_access.domain.events.base import DomainEvent, IDomainEventPublisher

logger = structlog.get_logger(__name__)

EventHandler = Callable[[Dict[str, Any]], Any]


class LoggingEventPublisher(IDomainEventPublisher):
    """In-memory publisher that logs events and fans them out to handlers.

    Handler failures are logged and never reach the publisher's caller.
    """

    def __init__(self, keep_history: int = 1000):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._published_events: List[Dict[str, Any]] = []
        self._keep_history = keep_history

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    async def publish(self, event: DomainEvent) -> bool:
        """Publish DomainEvent using event type as topic."""
        payload = event.to_dict()
        logger.info(
            "Domain event published",
            event_type=event.event_type,
            tenant_id=event.tenant_id,
            event_id=payload["event_id"],
        )

        self._published_events.append(payload)
        if len(self._published_events) > self._keep_history:
            del self._published_events[: len(self._published_events) - self._keep_history]

        for handler in self._handlers.get(event.event_type, []):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.error(
                    "Event handler failed",
                    event_type=event.event_type,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(exc),
                )
        return True

    async def publish_batch(self, events: list[DomainEvent]) -> bool:
        """Publish a batch of DomainEvents."""
        if not events:
            return True

        results: list[bool] = []
        for event in events:
            results.append(await self.publish(event))
        return all(results)

    @property
    def published_events(self) -> List[Dict[str, Any]]:
        return list(self._published_events)


__all__ = ["LoggingEventPublisher"]
