"""Mappers between domain entities and stored documents."""

from .subscription_mapper import PlanMapper, SubscriptionMapper
from .tenant_mapper import TenantMapper
from .trial_config_mapper import TrialConfigMapper

__all__ = ["PlanMapper", "SubscriptionMapper", "TenantMapper", "TrialConfigMapper"]
