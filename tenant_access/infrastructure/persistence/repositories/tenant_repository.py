"""Record-store implementation of ITenantRepository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tenant_access.domain.entities.tenant import Tenant
from tenant_access.domain.interfaces import IRecordStore
from tenant_access.domain.repositories.tenant_repository import ITenantRepository
from tenant_access.domain.services.time_normalizer import TimeNormalizer
from tenant_access.infrastructure.persistence.mappers.tenant_mapper import TenantMapper

TENANTS_COLLECTION = "businesses"


class DocumentTenantRepository(ITenantRepository):
    """Stores tenants in the ``businesses`` collection."""

    def __init__(self, store: IRecordStore, normalizer: TimeNormalizer):
        self._store = store
        self._normalizer = normalizer

    async def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        document = await self._store.get(TENANTS_COLLECTION, tenant_id)
        if document is None:
            return None
        return TenantMapper.to_domain(document, self._normalizer)

    async def create(self, tenant: Tenant) -> Tenant:
        document = TenantMapper.to_document(tenant)
        if tenant.id:
            await self._store.upsert(TENANTS_COLLECTION, tenant.id, document, merge=False)
        else:
            tenant.id = await self._store.add(TENANTS_COLLECTION, document)
        return tenant

    async def save(self, tenant: Tenant) -> Tenant:
        await self._store.upsert(TENANTS_COLLECTION, tenant.id, TenantMapper.to_document(tenant))
        return tenant

    async def update_fields(self, tenant_id: str, fields: Dict[str, Any]) -> None:
        await self._store.upsert(
            TENANTS_COLLECTION,
            tenant_id,
            TenantMapper.to_document_fields(fields),
            merge=True,
        )

    async def list_in_trial(self) -> List[Tenant]:
        documents = await self._store.query(TENANTS_COLLECTION, {"isInTrial": True})
        return [TenantMapper.to_domain(document, self._normalizer) for document in documents]


__all__ = ["DocumentTenantRepository", "TENANTS_COLLECTION"]
