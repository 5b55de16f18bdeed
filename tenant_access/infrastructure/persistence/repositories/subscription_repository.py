"""Record-store implementations of the subscription and plan repositories."""

from __future__ import annotations

from typing import List, Optional

from tenant_access.domain.entities.subscription import SubscriptionPlan, SubscriptionRecord
from tenant_access.domain.interfaces import IRecordStore
from tenant_access.domain.repositories.subscription_repository import (
    IPlanRepository,
    ISubscriptionRepository,
)
from tenant_access.domain.services.time_normalizer import TimeNormalizer
from tenant_access.infrastructure.persistence.mappers.subscription_mapper import (
    PlanMapper,
    SubscriptionMapper,
)

SUBSCRIPTIONS_COLLECTION = "subscriptions"
PLANS_COLLECTION = "subscription_plans"


class DocumentSubscriptionRepository(ISubscriptionRepository):
    """Stores subscription records in the ``subscriptions`` collection."""

    def __init__(self, store: IRecordStore, normalizer: TimeNormalizer):
        self._store = store
        self._normalizer = normalizer

    async def list_for_tenant(self, tenant_id: str) -> List[SubscriptionRecord]:
        documents = await self._store.query(SUBSCRIPTIONS_COLLECTION, {"clientId": tenant_id})
        return [SubscriptionMapper.to_domain(document, self._normalizer) for document in documents]

    async def get_by_id(self, subscription_id: str) -> Optional[SubscriptionRecord]:
        document = await self._store.get(SUBSCRIPTIONS_COLLECTION, subscription_id)
        if document is None:
            return None
        return SubscriptionMapper.to_domain(document, self._normalizer)

    async def add(self, record: SubscriptionRecord) -> SubscriptionRecord:
        record.id = await self._store.add(
            SUBSCRIPTIONS_COLLECTION, SubscriptionMapper.to_document(record)
        )
        return record

    async def save(self, record: SubscriptionRecord) -> SubscriptionRecord:
        if not record.id:
            return await self.add(record)
        await self._store.upsert(
            SUBSCRIPTIONS_COLLECTION, record.id, SubscriptionMapper.to_document(record)
        )
        return record


class DocumentPlanRepository(IPlanRepository):
    """Stores plans in the ``subscription_plans`` collection."""

    def __init__(self, store: IRecordStore):
        self._store = store

    async def get_by_id(self, plan_id: str) -> Optional[SubscriptionPlan]:
        document = await self._store.get(PLANS_COLLECTION, plan_id)
        if document is None:
            return None
        return PlanMapper.to_domain(document)

    async def save(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        await self._store.upsert(PLANS_COLLECTION, plan.id, PlanMapper.to_document(plan))
        return plan


__all__ = [
    "DocumentPlanRepository",
    "DocumentSubscriptionRepository",
    "PLANS_COLLECTION",
    "SUBSCRIPTIONS_COLLECTION",
]
