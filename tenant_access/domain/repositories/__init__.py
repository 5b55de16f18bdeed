"""Domain repository interfaces."""

from .subscription_repository import IPlanRepository, ISubscriptionRepository
from .tenant_repository import ITenantRepository
from .trial_config_repository import ITrialConfigRepository

__all__ = [
    "IPlanRepository",
    "ISubscriptionRepository",
    "ITenantRepository",
    "ITrialConfigRepository",
]
