"""Record-store implementation of ITrialConfigRepository."""

from __future__ import annotations

from typing import Optional

from tenant_access.domain.entities.trial_config import TrialPeriodsConfig
from tenant_access.domain.interfaces import IRecordStore
from tenant_access.domain.repositories.trial_config_repository import ITrialConfigRepository
from tenant_access.domain.services.time_normalizer import TimeNormalizer
from tenant_access.infrastructure.persistence.mappers.trial_config_mapper import TrialConfigMapper

TRIAL_CONFIGS_COLLECTION = "trial_configs"


class DocumentTrialConfigRepository(ITrialConfigRepository):
    """One document per scope, keyed by scope id."""

    def __init__(self, store: IRecordStore, normalizer: TimeNormalizer):
        self._store = store
        self._normalizer = normalizer

    async def get_for_scope(self, scope_id: str) -> Optional[TrialPeriodsConfig]:
        document = await self._store.get(TRIAL_CONFIGS_COLLECTION, scope_id)
        if document is None:
            return None
        return TrialConfigMapper.to_domain(document, self._normalizer)

    async def save(self, config: TrialPeriodsConfig) -> TrialPeriodsConfig:
        await self._store.upsert(
            TRIAL_CONFIGS_COLLECTION,
            config.scope_id,
            TrialConfigMapper.to_document(config),
            merge=False,
        )
        return config


__all__ = ["DocumentTrialConfigRepository", "TRIAL_CONFIGS_COLLECTION"]
