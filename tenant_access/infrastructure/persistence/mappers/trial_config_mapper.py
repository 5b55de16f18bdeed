"""Mapper for ``trial_configs`` documents."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from tenant_access.domain.entities.trial_config import (
    TrialPeriodDefinition,
    TrialPeriodsConfig,
)
from tenant_access.domain.services.time_normalizer import TimeNormalizer


def _non_negative_int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class TrialConfigMapper:
    """Maps between TrialPeriodsConfig and its stored document.

    Malformed definitions (not a mapping, or without an id) are dropped;
    the declared order of the remaining ones is preserved.
    """

    @staticmethod
    def to_domain(document: Mapping[str, Any], normalizer: TimeNormalizer) -> TrialPeriodsConfig:
        definitions: List[TrialPeriodDefinition] = []
        for raw in document.get("trialPeriods") or []:
            if not isinstance(raw, Mapping) or raw.get("id") in (None, ""):
                continue
            definitions.append(
                TrialPeriodDefinition(
                    id=str(raw["id"]),
                    name=str(raw.get("name") or ""),
                    days=_non_negative_int(raw.get("days")),
                    minutes=_non_negative_int(raw.get("minutes")),
                    is_active=raw.get("isActive") is True,
                    description=str(raw.get("description") or ""),
                    created_at=normalizer.to_optional_millis(raw.get("createdAt")),
                    last_modified=normalizer.to_optional_millis(raw.get("lastModified")),
                )
            )

        active_id = document.get("activeTrialId")
        return TrialPeriodsConfig(
            scope_id=str(document["id"]),
            enable_trials=document.get("enableTrials") is True,
            active_trial_id=str(active_id) if active_id not in (None, "") else None,
            trial_periods=definitions,
            last_modified=normalizer.to_optional_millis(document.get("lastModified")),
        )

    @staticmethod
    def to_document(config: TrialPeriodsConfig) -> Dict[str, Any]:
        return {
            "enableTrials": config.enable_trials,
            "activeTrialId": config.active_trial_id,
            "trialPeriods": [
                {
                    "id": definition.id,
                    "name": definition.name,
                    "days": definition.days,
                    "minutes": definition.minutes,
                    "isActive": definition.is_active,
                    "description": definition.description,
                    "createdAt": definition.created_at,
                    "lastModified": definition.last_modified,
                }
                for definition in config.trial_periods
            ],
            "lastModified": config.last_modified,
        }


__all__ = ["TrialConfigMapper"]
