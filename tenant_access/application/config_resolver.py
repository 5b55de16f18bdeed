"""Resolution of the trial period definition that applies to a scope."""

from __future__ import annotations

from typing import List, Optional, Tuple

import structlog

from tenant_access.domain.entities.trial_config import (
    TrialPeriodDefinition,
    TrialPeriodsConfig,
)
from tenant_access.domain.exceptions import ValidationError
from tenant_access.domain.repositories.trial_config_repository import ITrialConfigRepository
from tenant_access.domain.services.time_normalizer import Clock, current_millis
from tenant_access.domain.value_objects import TrialDuration

logger = structlog.get_logger(__name__)

GLOBAL_SCOPE_ID = "admin"

DEFAULT_TRIAL_DURATION = TrialDuration(days=30, minutes=0, source="default")

SOURCE_SCOPE = "scope"
SOURCE_GLOBAL = "global"


class ConfigResolver:
    """Finds a scope's trial configuration and picks its applicable definition.

    A scope without its own configuration document falls back to the global
    scope. Definition precedence, first match wins:

    1. the first definition flagged ``is_active``;
    2. the definition whose id equals ``active_trial_id``;
    3. the first definition in declared order.
    """

    def __init__(
        self,
        repository: ITrialConfigRepository,
        global_scope_id: str = GLOBAL_SCOPE_ID,
        default_duration: TrialDuration = DEFAULT_TRIAL_DURATION,
        clock: Clock = current_millis,
    ) -> None:
        self._repository = repository
        self._global_scope_id = global_scope_id
        self._default_duration = default_duration
        self._clock = clock

    @property
    def global_scope_id(self) -> str:
        return self._global_scope_id

    @property
    def default_duration(self) -> TrialDuration:
        return self._default_duration

    async def get_config(self, scope_id: Optional[str] = None) -> Optional[TrialPeriodsConfig]:
        """Return the scope's config, or the global one when the scope has none."""
        config, _ = await self._load(scope_id)
        return config

    async def resolve_active_definition(
        self, scope_id: Optional[str] = None
    ) -> Optional[TrialPeriodDefinition]:
        """Return the applicable definition, or ``None`` when trials are off or unconfigured."""
        config, _ = await self._load(scope_id)
        return self._select(config)

    async def resolve_trial_duration(self, scope_id: Optional[str] = None) -> TrialDuration:
        """Duration to give a new trial; falls back to the default duration."""
        config, source = await self._load(scope_id)
        definition = self._select(config)
        if definition is None:
            logger.debug(
                "No trial definition applies, using default duration",
                scope_id=scope_id,
                days=self._default_duration.days,
            )
            return self._default_duration

        return TrialDuration(
            days=definition.days,
            minutes=definition.minutes,
            definition_id=definition.id,
            definition_name=definition.name,
            source=source,
        )

    async def save_config(self, config: TrialPeriodsConfig) -> TrialPeriodsConfig:
        """Validate, stamp and persist a scope's configuration.

        Raises:
            ValidationError: empty or duplicate definition ids, negative
                durations, or an ``active_trial_id`` naming no definition.
        """
        now = self._clock()
        seen = set()
        sanitized: List[TrialPeriodDefinition] = []
        for definition in config.trial_periods:
            definition_id = (definition.id or "").strip()
            if not definition_id:
                raise ValidationError("Trial period definitions need an id")
            if definition_id in seen:
                raise ValidationError(f"Duplicate trial period id: {definition_id}")
            if definition.days < 0 or definition.minutes < 0:
                raise ValidationError(f"Trial period {definition_id} has a negative duration")
            seen.add(definition_id)
            sanitized.append(
                TrialPeriodDefinition(
                    id=definition_id,
                    name=definition.name.strip() or definition_id,
                    days=definition.days,
                    minutes=definition.minutes,
                    is_active=definition.is_active,
                    description=definition.description.strip(),
                    created_at=definition.created_at if definition.created_at is not None else now,
                    last_modified=now,
                )
            )

        if config.active_trial_id is not None and config.active_trial_id not in seen:
            raise ValidationError(f"Unknown active trial id: {config.active_trial_id}")

        stored = TrialPeriodsConfig(
            scope_id=config.scope_id,
            enable_trials=config.enable_trials,
            active_trial_id=config.active_trial_id,
            trial_periods=sanitized,
            last_modified=now,
        )
        await self._repository.save(stored)
        logger.info(
            "Trial configuration saved",
            scope_id=stored.scope_id,
            enable_trials=stored.enable_trials,
            definitions=len(sanitized),
        )
        return stored

    async def _load(self, scope_id: Optional[str]) -> Tuple[Optional[TrialPeriodsConfig], str]:
        scope_id = scope_id or self._global_scope_id
        config = await self._repository.get_for_scope(scope_id)
        if config is not None:
            source = SOURCE_GLOBAL if scope_id == self._global_scope_id else SOURCE_SCOPE
            return config, source

        if scope_id == self._global_scope_id:
            return None, SOURCE_GLOBAL

        logger.debug("Scope has no trial configuration, using global", scope_id=scope_id)
        return await self._repository.get_for_scope(self._global_scope_id), SOURCE_GLOBAL

    @staticmethod
    def _select(config: Optional[TrialPeriodsConfig]) -> Optional[TrialPeriodDefinition]:
        if config is None or not config.enable_trials or not config.trial_periods:
            return None

        for definition in config.trial_periods:
            if definition.is_active:
                return definition

        named = config.find_definition(config.active_trial_id)
        if named is not None:
            return named

        return config.trial_periods[0]


__all__ = [
    "ConfigResolver",
    "DEFAULT_TRIAL_DURATION",
    "GLOBAL_SCOPE_ID",
]
