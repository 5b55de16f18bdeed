"""Pytest fixtures wiring the engine over in-memory adapters and a frozen clock."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from tenant_access.application.config_resolver import ConfigResolver
from tenant_access.application.enforcement_guard import EnforcementGuard
from tenant_access.application.status_resolver import StatusResolver
from tenant_access.application.trial_lifecycle_service import TrialLifecycleManager
from tenant_access.core.config import Settings
from tenant_access.core.container import AccessEngineContainer
from tenant_access.domain.services.time_normalizer import TimeNormalizer
from tenant_access.infrastructure.adapters import (
    LocalIdentityProvider,
    LoggingEventPublisher,
    LoggingTrialNotifier,
    MemoryHandoffStore,
    MemoryRecordStore,
)
from tenant_access.infrastructure.persistence.repositories import (
    DocumentPlanRepository,
    DocumentSubscriptionRepository,
    DocumentTenantRepository,
    DocumentTrialConfigRepository,
)
from tests.fixtures.tenant_fixtures import NOW, FrozenClock


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def normalizer(clock: FrozenClock) -> TimeNormalizer:
    return TimeNormalizer(clock)


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def event_publisher() -> LoggingEventPublisher:
    return LoggingEventPublisher()


@pytest.fixture
def notifier() -> LoggingTrialNotifier:
    return LoggingTrialNotifier()


@pytest.fixture
def identity() -> LocalIdentityProvider:
    return LocalIdentityProvider()


@pytest.fixture
def handoff() -> MemoryHandoffStore:
    return MemoryHandoffStore()


@pytest.fixture
def tenants(store: MemoryRecordStore, normalizer: TimeNormalizer) -> DocumentTenantRepository:
    return DocumentTenantRepository(store, normalizer)


@pytest.fixture
def subscriptions(store: MemoryRecordStore, normalizer: TimeNormalizer) -> DocumentSubscriptionRepository:
    return DocumentSubscriptionRepository(store, normalizer)


@pytest.fixture
def plans(store: MemoryRecordStore) -> DocumentPlanRepository:
    return DocumentPlanRepository(store)


@pytest.fixture
def trial_configs(store: MemoryRecordStore, normalizer: TimeNormalizer) -> DocumentTrialConfigRepository:
    return DocumentTrialConfigRepository(store, normalizer)


@pytest.fixture
def config_resolver(trial_configs: DocumentTrialConfigRepository, clock: FrozenClock) -> ConfigResolver:
    return ConfigResolver(trial_configs, clock=clock)


@pytest.fixture
async def status_resolver(
    tenants: DocumentTenantRepository,
    subscriptions: DocumentSubscriptionRepository,
    normalizer: TimeNormalizer,
    event_publisher: LoggingEventPublisher,
) -> AsyncIterator[StatusResolver]:
    resolver = StatusResolver(tenants, subscriptions, normalizer, event_publisher)
    yield resolver
    await resolver.drain_pending_corrections()


@pytest.fixture
def lifecycle(
    tenants: DocumentTenantRepository,
    subscriptions: DocumentSubscriptionRepository,
    plans: DocumentPlanRepository,
    config_resolver: ConfigResolver,
    normalizer: TimeNormalizer,
    notifier: LoggingTrialNotifier,
    event_publisher: LoggingEventPublisher,
) -> TrialLifecycleManager:
    return TrialLifecycleManager(
        tenants,
        subscriptions,
        plans,
        config_resolver,
        normalizer,
        notifier,
        event_publisher,
    )


@pytest.fixture
def guard(
    status_resolver: StatusResolver,
    identity: LocalIdentityProvider,
    handoff: MemoryHandoffStore,
) -> EnforcementGuard:
    return EnforcementGuard(status_resolver, identity, handoff)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        RECORD_STORE_BACKEND="memory",
        TRIAL_SWEEP_INTERVAL_MINUTES=0,
        TRIAL_NOTIFICATION_WEBHOOK_URL=None,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
async def container(
    settings: Settings,
    clock: FrozenClock,
    store: MemoryRecordStore,
    identity: LocalIdentityProvider,
    notifier: LoggingTrialNotifier,
) -> AsyncIterator[AccessEngineContainer]:
    """A fully wired engine sharing the test's store, identity and clock."""
    engine = await AccessEngineContainer.create(
        settings,
        clock=clock,
        record_store=store,
        identity=identity,
        notifier=notifier,
    )
    try:
        yield engine
    finally:
        await engine.shutdown()
