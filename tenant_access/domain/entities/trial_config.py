"""Trial period definitions and their per-scope configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TrialPeriodDefinition:
    """A named trial duration that can be applied to new tenants."""

    id: str
    name: str
    days: int = 0
    minutes: int = 0
    is_active: bool = False
    description: str = ""
    created_at: Optional[int] = None
    last_modified: Optional[int] = None


@dataclass
class TrialPeriodsConfig:
    """
    Trial configuration for one scope.

    A scope is either a single tenant or the global fallback scope. The
    order of ``trial_periods`` is the declared order and is significant.
    """

    scope_id: str
    enable_trials: bool = False
    active_trial_id: Optional[str] = None
    trial_periods: List[TrialPeriodDefinition] = field(default_factory=list)
    last_modified: Optional[int] = None

    def find_definition(self, definition_id: Optional[str]) -> Optional[TrialPeriodDefinition]:
        if definition_id is None:
            return None
        for definition in self.trial_periods:
            if definition.id == definition_id:
                return definition
        return None


__all__ = ["TrialPeriodDefinition", "TrialPeriodsConfig"]
