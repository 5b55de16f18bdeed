"""
HTTP request/response DTOs for the access engine.

These are API-layer models, kept separate from the domain dataclasses; the
``from_domain`` constructors do the translation.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from tenant_access.application.enforcement_guard import (
    AccessCheckpoint,
    AccessDecision,
    SubscriptionErrorReason,
)
from tenant_access.application.status_resolver import LoginCheck
from tenant_access.application.trial_lifecycle_service import SweepReport
from tenant_access.domain.entities.access_status import ResolvedStatus, StatusCode
from tenant_access.domain.entities.tenant import TenantDraft
from tenant_access.domain.entities.trial_config import (
    TrialPeriodDefinition,
    TrialPeriodsConfig,
)
from tenant_access.domain.value_objects import TrialRemaining


class ResolvedStatusResponse(BaseModel):
    """Access status of a tenant at the time of the request."""

    status_code: StatusCode
    message: str
    has_active_subscription: bool
    is_in_trial: bool
    trial_days_remaining: Optional[int] = None
    subscription_end_date: Optional[int] = Field(None, description="Epoch milliseconds")
    subscription_expired: bool
    trial_expired: bool
    subscription_cancelled: bool

    @classmethod
    def from_domain(cls, status: ResolvedStatus) -> "ResolvedStatusResponse":
        return cls(
            status_code=status.status_code,
            message=status.message,
            has_active_subscription=status.has_active_subscription,
            is_in_trial=status.is_in_trial,
            trial_days_remaining=status.trial_days_remaining,
            subscription_end_date=status.subscription_end_date,
            subscription_expired=status.subscription_expired,
            trial_expired=status.trial_expired,
            subscription_cancelled=status.subscription_cancelled,
        )


class LoginCheckResponse(BaseModel):
    can_login: bool
    message: str
    status_code: StatusCode

    @classmethod
    def from_domain(cls, check: LoginCheck) -> "LoginCheckResponse":
        return cls(can_login=check.can_login, message=check.message, status_code=check.status_code)


class TrialRemainingResponse(BaseModel):
    days: int
    hours: int
    minutes: int

    @classmethod
    def from_domain(cls, remaining: TrialRemaining) -> "TrialRemainingResponse":
        return cls(days=remaining.days, hours=remaining.hours, minutes=remaining.minutes)


class AccessCheckRequest(BaseModel):
    checkpoint: AccessCheckpoint = AccessCheckpoint.PERIODIC


class SubscriptionErrorResponse(BaseModel):
    """Denial reason shown on the landing page; field names match the handoff payload."""

    title: str
    message: str
    statusCode: StatusCode

    @classmethod
    def from_domain(cls, reason: SubscriptionErrorReason) -> "SubscriptionErrorResponse":
        return cls(title=reason.title, message=reason.message, statusCode=reason.status_code)


class AccessDecisionResponse(BaseModel):
    allowed: bool
    checkpoint: AccessCheckpoint
    tenant_id: Optional[str] = None
    status_code: Optional[StatusCode] = None
    trial_days_remaining: Optional[int] = None
    redirect_url: Optional[str] = None
    reason: Optional[SubscriptionErrorResponse] = None

    @classmethod
    def from_domain(cls, decision: AccessDecision) -> "AccessDecisionResponse":
        return cls(
            allowed=decision.allowed,
            checkpoint=decision.checkpoint,
            tenant_id=decision.tenant_id,
            status_code=decision.status.status_code if decision.status else None,
            trial_days_remaining=decision.trial_days_remaining,
            redirect_url=decision.redirect_url,
            reason=(
                SubscriptionErrorResponse.from_domain(decision.reason) if decision.reason else None
            ),
        )


class TenantCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Business name")
    email: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    business_id: Optional[str] = None
    scope_id: Optional[str] = Field(None, description="Trial configuration scope")

    def to_draft(self) -> TenantDraft:
        return TenantDraft(
            name=self.name,
            email=self.email,
            contact_name=self.contact_name,
            phone=self.phone,
            business_id=self.business_id,
        )


class TenantCreatedResponse(BaseModel):
    tenant_id: str


class TrialExtendRequest(BaseModel):
    additional_days: int = Field(..., ge=0)
    additional_minutes: int = Field(0, ge=0)


class TrialApplyRequest(BaseModel):
    period_id: Optional[str] = None


class ConvertTrialRequest(BaseModel):
    plan_id: str = Field(..., min_length=1)


class ReapplyRequest(BaseModel):
    scope_id: Optional[str] = None


class ReapplyResponse(BaseModel):
    updated: int


class OperationResult(BaseModel):
    success: bool


class SweepReportResponse(BaseModel):
    examined: int
    expired: List[str]
    final_notices: List[str]
    reminders: List[str]
    skipped: List[str]
    failed_notices: List[str]

    @classmethod
    def from_domain(cls, report: SweepReport) -> "SweepReportResponse":
        return cls(
            examined=report.examined,
            expired=report.expired,
            final_notices=report.final_notices,
            reminders=report.reminders,
            skipped=report.skipped,
            failed_notices=report.failed_notices,
        )


class TrialPeriodDefinitionSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    days: int = Field(0, ge=0)
    minutes: int = Field(0, ge=0)
    is_active: bool = False
    description: str = ""

    @classmethod
    def from_domain(cls, definition: TrialPeriodDefinition) -> "TrialPeriodDefinitionSchema":
        return cls(
            id=definition.id,
            name=definition.name,
            days=definition.days,
            minutes=definition.minutes,
            is_active=definition.is_active,
            description=definition.description,
        )

    def to_domain(self) -> TrialPeriodDefinition:
        return TrialPeriodDefinition(
            id=self.id,
            name=self.name,
            days=self.days,
            minutes=self.minutes,
            is_active=self.is_active,
            description=self.description,
        )


class TrialConfigSchema(BaseModel):
    enable_trials: bool = False
    active_trial_id: Optional[str] = None
    trial_periods: List[TrialPeriodDefinitionSchema] = Field(default_factory=list)
    last_modified: Optional[int] = None

    @classmethod
    def from_domain(cls, config: TrialPeriodsConfig) -> "TrialConfigSchema":
        return cls(
            enable_trials=config.enable_trials,
            active_trial_id=config.active_trial_id,
            trial_periods=[
                TrialPeriodDefinitionSchema.from_domain(definition)
                for definition in config.trial_periods
            ],
            last_modified=config.last_modified,
        )

    def to_domain(self, scope_id: str) -> TrialPeriodsConfig:
        return TrialPeriodsConfig(
            scope_id=scope_id,
            enable_trials=self.enable_trials,
            active_trial_id=self.active_trial_id,
            trial_periods=[definition.to_domain() for definition in self.trial_periods],
        )


__all__ = [
    "AccessCheckRequest",
    "AccessDecisionResponse",
    "ConvertTrialRequest",
    "LoginCheckResponse",
    "OperationResult",
    "ReapplyRequest",
    "ReapplyResponse",
    "ResolvedStatusResponse",
    "SubscriptionErrorResponse",
    "SweepReportResponse",
    "TenantCreateRequest",
    "TenantCreatedResponse",
    "TrialApplyRequest",
    "TrialConfigSchema",
    "TrialExtendRequest",
    "TrialPeriodDefinitionSchema",
    "TrialRemainingResponse",
]
