"""Record-store backed repository implementations."""

from .subscription_repository import DocumentPlanRepository, DocumentSubscriptionRepository
from .tenant_repository import DocumentTenantRepository
from .trial_config_repository import DocumentTrialConfigRepository

__all__ = [
    "DocumentPlanRepository",
    "DocumentSubscriptionRepository",
    "DocumentTenantRepository",
    "DocumentTrialConfigRepository",
]
