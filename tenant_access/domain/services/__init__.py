"""Pure domain services: time normalization, trial arithmetic, status rules."""

from .status_rules import RULES, ResolutionContext, StatusRule, evaluate
from .time_normalizer import Clock, TimeNormalizer, current_millis, format_date
from .trial_clock import TrialClock

__all__ = [
    "Clock",
    "RULES",
    "ResolutionContext",
    "StatusRule",
    "TimeNormalizer",
    "TrialClock",
    "current_millis",
    "evaluate",
    "format_date",
]
