"""Domain entities exposed for application layer use."""

from .access_status import (
    ENFORCED_STATUS_CODES,
    GRANTING_STATUS_CODES,
    ResolvedStatus,
    StatusCode,
)
from .subscription import (
    BillingCycle,
    SubscriptionPlan,
    SubscriptionRecord,
    SubscriptionStatus,
)
from .tenant import Tenant, TenantDraft, TenantStatus
from .trial_config import (
    TrialPeriodDefinition,
    TrialPeriodsConfig,
)

__all__ = [
    "BillingCycle",
    "ENFORCED_STATUS_CODES",
    "GRANTING_STATUS_CODES",
    "ResolvedStatus",
    "StatusCode",
    "SubscriptionPlan",
    "SubscriptionRecord",
    "SubscriptionStatus",
    "Tenant",
    "TenantDraft",
    "TenantStatus",
    "TrialPeriodDefinition",
    "TrialPeriodsConfig",
]
