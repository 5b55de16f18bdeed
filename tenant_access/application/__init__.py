"""Application layer orchestrating the access engine's use cases."""

from .config_resolver import ConfigResolver, DEFAULT_TRIAL_DURATION, GLOBAL_SCOPE_ID
from .enforcement_guard import (
    AccessCheckpoint,
    AccessDecision,
    EnforcementGuard,
    SubscriptionErrorReason,
    read_and_clear_reason,
)
from .session_monitor import PeriodicTrialSweep, SessionStatusMonitor
from .status_resolver import LoginCheck, StatusResolver
from .trial_lifecycle_service import SweepReport, TrialLifecycleManager

__all__ = [
    "AccessCheckpoint",
    "AccessDecision",
    "ConfigResolver",
    "DEFAULT_TRIAL_DURATION",
    "EnforcementGuard",
    "GLOBAL_SCOPE_ID",
    "LoginCheck",
    "PeriodicTrialSweep",
    "SessionStatusMonitor",
    "StatusResolver",
    "SubscriptionErrorReason",
    "SweepReport",
    "TrialLifecycleManager",
    "read_and_clear_reason",
]
