"""Domain repository interfaces for subscription records and plans."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from tenant_access.domain.entities.subscription import SubscriptionPlan, SubscriptionRecord


class ISubscriptionRepository(ABC):
    """Repository interface for subscription records."""

    @abstractmethod
    async def list_for_tenant(self, tenant_id: str) -> List[SubscriptionRecord]:
        """All records of one tenant, in any status."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, subscription_id: str) -> Optional[SubscriptionRecord]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, record: SubscriptionRecord) -> SubscriptionRecord:
        """Persist a new record and return it with its generated id."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, record: SubscriptionRecord) -> SubscriptionRecord:
        raise NotImplementedError


class IPlanRepository(ABC):
    """Repository interface for subscription plans."""

    @abstractmethod
    async def get_by_id(self, plan_id: str) -> Optional[SubscriptionPlan]:
        raise NotImplementedError

    @abstractmethod
    async def save(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        raise NotImplementedError


__all__ = ["ISubscriptionRepository", "IPlanRepository"]
