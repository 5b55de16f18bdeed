"""Domain repository interface for trial period configuration."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from tenant_access.domain.entities.trial_config import TrialPeriodsConfig


class ITrialConfigRepository(ABC):
    """One configuration document per scope."""

    @abstractmethod
    async def get_for_scope(self, scope_id: str) -> Optional[TrialPeriodsConfig]:
        """Return the scope's own document, without any fallback."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, config: TrialPeriodsConfig) -> TrialPeriodsConfig:
        raise NotImplementedError


__all__ = ["ITrialConfigRepository"]
