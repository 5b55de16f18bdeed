"""Domain repository interface for Tenant aggregates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from tenant_access.domain.entities.tenant import Tenant


class ITenantRepository(ABC):
    """Repository interface for Tenant aggregate."""

    @abstractmethod
    async def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        """Get a tenant by ID."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, tenant: Tenant) -> Tenant:
        """Persist a new tenant; assigns an id when the tenant has none."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, tenant: Tenant) -> Tenant:
        """Write every field of the tenant back to storage."""
        raise NotImplementedError

    @abstractmethod
    async def update_fields(self, tenant_id: str, fields: Dict[str, Any]) -> None:
        """Merge a partial update into the stored tenant.

        ``fields`` uses entity attribute names; the write is a single
        idempotent merge.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_in_trial(self) -> List[Tenant]:
        """List tenants whose trial flag is set."""
        raise NotImplementedError


__all__ = ["ITenantRepository"]
