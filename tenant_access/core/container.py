"""
Dependency Injection Container

Builds every engine component exactly once per container and tears them down
explicitly. Nothing here is a module-level singleton: tests and the HTTP app
each create their own container.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import structlog

from tenant_access.application.config_resolver import ConfigResolver
from tenant_access.application.enforcement_guard import EnforcementGuard
from tenant_access.application.session_monitor import PeriodicTrialSweep, SessionStatusMonitor
from tenant_access.application.status_resolver import StatusResolver
from tenant_access.application.trial_lifecycle_service import TrialLifecycleManager
from tenant_access.core.config import Settings, get_settings
from tenant_access.domain.events.base import IDomainEventPublisher
from tenant_access.domain.exceptions import ConfigurationError
from tenant_access.domain.interfaces import (
    IHandoffStore,
    IIdentityProvider,
    IRecordStore,
    ITrialNotifier,
)
from tenant_access.domain.services.time_normalizer import Clock, TimeNormalizer, current_millis
from tenant_access.domain.value_objects import TrialDuration
from tenant_access.infrastructure.adapters import (
    LocalIdentityProvider,
    LoggingEventPublisher,
    LoggingTrialNotifier,
    MemoryHandoffStore,
    MemoryRecordStore,
    PostgresRecordStore,
    WebhookTrialNotifier,
)
from tenant_access.infrastructure.database.sqlmodel_engine import DatabaseManager
from tenant_access.infrastructure.persistence.repositories import (
    DocumentPlanRepository,
    DocumentSubscriptionRepository,
    DocumentTenantRepository,
    DocumentTrialConfigRepository,
)

logger = structlog.get_logger(__name__)


@dataclass
class AccessEngineContainer:
    """Wired engine components."""

    settings: Settings
    normalizer: TimeNormalizer
    record_store: IRecordStore
    identity: IIdentityProvider
    handoff: IHandoffStore
    notifier: ITrialNotifier
    event_publisher: IDomainEventPublisher
    tenants: DocumentTenantRepository
    subscriptions: DocumentSubscriptionRepository
    plans: DocumentPlanRepository
    trial_configs: DocumentTrialConfigRepository
    config_resolver: ConfigResolver
    status_resolver: StatusResolver
    lifecycle: TrialLifecycleManager
    guard: EnforcementGuard
    monitor: SessionStatusMonitor
    sweeper: PeriodicTrialSweep
    db_manager: Optional[DatabaseManager] = None
    _closed: bool = field(default=False, repr=False)

    @classmethod
    async def create(
        cls,
        settings: Optional[Settings] = None,
        *,
        clock: Clock = current_millis,
        record_store: Optional[IRecordStore] = None,
        identity: Optional[IIdentityProvider] = None,
        handoff: Optional[IHandoffStore] = None,
        notifier: Optional[ITrialNotifier] = None,
        event_publisher: Optional[IDomainEventPublisher] = None,
    ) -> "AccessEngineContainer":
        """Build a container; explicitly passed collaborators win over settings."""
        settings = settings or get_settings()
        normalizer = TimeNormalizer(clock)

        db_manager: Optional[DatabaseManager] = None
        if record_store is None:
            if settings.uses_postgres():
                db_manager = DatabaseManager(settings)
                await db_manager.initialize()
                record_store = PostgresRecordStore(db_manager)
            elif settings.RECORD_STORE_BACKEND == "memory":
                record_store = MemoryRecordStore()
            else:
                raise ConfigurationError(
                    f"Unknown record store backend: {settings.RECORD_STORE_BACKEND}"
                )

        if notifier is None:
            if settings.TRIAL_NOTIFICATION_WEBHOOK_URL:
                notifier = WebhookTrialNotifier(
                    settings.TRIAL_NOTIFICATION_WEBHOOK_URL,
                    timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
                )
            else:
                notifier = LoggingTrialNotifier()

        identity = identity or LocalIdentityProvider()
        handoff = handoff or MemoryHandoffStore()
        event_publisher = event_publisher or LoggingEventPublisher()

        tenants = DocumentTenantRepository(record_store, normalizer)
        subscriptions = DocumentSubscriptionRepository(record_store, normalizer)
        plans = DocumentPlanRepository(record_store)
        trial_configs = DocumentTrialConfigRepository(record_store, normalizer)

        config_resolver = ConfigResolver(
            trial_configs,
            global_scope_id=settings.GLOBAL_TRIAL_SCOPE_ID,
            default_duration=TrialDuration(
                days=settings.DEFAULT_TRIAL_DAYS,
                minutes=settings.DEFAULT_TRIAL_MINUTES,
                source="default",
            ),
            clock=clock,
        )
        status_resolver = StatusResolver(tenants, subscriptions, normalizer, event_publisher)
        lifecycle = TrialLifecycleManager(
            tenants,
            subscriptions,
            plans,
            config_resolver,
            normalizer,
            notifier,
            event_publisher,
            reminder_days=settings.TRIAL_REMINDER_DAYS,
            final_notice_days=settings.TRIAL_FINAL_NOTICE_DAYS,
        )
        guard = EnforcementGuard(
            status_resolver,
            identity,
            handoff,
            redirect_url=settings.ACCESS_DENIED_REDIRECT_URL,
            error_key=settings.SUBSCRIPTION_ERROR_KEY,
        )
        monitor = SessionStatusMonitor(
            guard, identity, interval_minutes=settings.SUBSCRIPTION_CHECK_INTERVAL_MINUTES
        )
        sweeper = PeriodicTrialSweep(
            lifecycle.sweep_expiring_trials,
            interval_minutes=settings.TRIAL_SWEEP_INTERVAL_MINUTES,
        )

        logger.info(
            "Access engine container created",
            record_store=type(record_store).__name__,
            notifier=type(notifier).__name__,
        )
        return cls(
            settings=settings,
            normalizer=normalizer,
            record_store=record_store,
            identity=identity,
            handoff=handoff,
            notifier=notifier,
            event_publisher=event_publisher,
            tenants=tenants,
            subscriptions=subscriptions,
            plans=plans,
            trial_configs=trial_configs,
            config_resolver=config_resolver,
            status_resolver=status_resolver,
            lifecycle=lifecycle,
            guard=guard,
            monitor=monitor,
            sweeper=sweeper,
            db_manager=db_manager,
        )

    def start_background_tasks(self) -> None:
        self.monitor.start()
        self.sweeper.start()

    async def check_health(self) -> Dict[str, Any]:
        components = {
            "record_store": await self.record_store.check_health(),
            "notifier": await self.notifier.check_health(),
        }
        healthy = all(item.get("status") == "healthy" for item in components.values())
        return {
            "status": "healthy" if healthy else "degraded",
            "components": components,
            "pending_corrections": self.status_resolver.pending_corrections,
        }

    async def shutdown(self) -> None:
        """Stop background work, flush pending corrections and close connections."""
        if self._closed:
            return
        self._closed = True
        await self.monitor.shutdown()
        await self.sweeper.shutdown()
        await self.status_resolver.drain_pending_corrections()
        if self.db_manager is not None:
            await self.db_manager.shutdown()
        logger.info("Access engine container shut down")


__all__ = ["AccessEngineContainer"]
