"""
Ordered rule table for access-status resolution.

Each rule is a ``(name, predicate, resolution)`` triple evaluated against a
``ResolutionContext`` built from one read of the tenant and its subscription
records. The first rule whose predicate holds produces the ``ResolvedStatus``.
The table ends with an unconditional fallback, so resolution always yields
exactly one status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from tenant_access.domain.entities.access_status import ResolvedStatus, StatusCode
from tenant_access.domain.entities.subscription import SubscriptionRecord
from tenant_access.domain.entities.tenant import Tenant
from tenant_access.domain.services.time_normalizer import format_date
from tenant_access.domain.services.trial_clock import TrialClock

DEFAULT_TRIAL_DAYS_WITHOUT_END = 30

MESSAGE_ACTIVE = "You have an active subscription."
MESSAGE_TRIAL_ACTIVE = "You are in your trial period. {days} day(s) remaining."
MESSAGE_SUBSCRIPTION_EXPIRED = (
    "Your subscription expired on {date}. Please renew it to continue using the application."
)
MESSAGE_TRIAL_EXPIRED = "Your trial period has ended."
MESSAGE_CANCELLED = (
    "Your subscription has been cancelled. Please contact our support team for more information."
)
MESSAGE_NO_SUBSCRIPTION = (
    "You do not have an active subscription. Please choose a plan to access the application."
)
MESSAGE_UNVERIFIABLE = (
    "Unable to verify your subscription status. Please try again later."
)


@dataclass(frozen=True)
class ResolutionContext:
    """Everything a rule may look at: one snapshot, one instant."""

    tenant: Optional[Tenant]
    subscriptions: Sequence[SubscriptionRecord] = field(default_factory=tuple)
    now: int = 0

    @property
    def active_now(self) -> List[SubscriptionRecord]:
        return [record for record in self.subscriptions if record.is_active_at(self.now)]

    @property
    def nominally_active(self) -> List[SubscriptionRecord]:
        return [record for record in self.subscriptions if record.is_nominally_active()]

    @property
    def cancelled(self) -> List[SubscriptionRecord]:
        return [record for record in self.subscriptions if record.is_cancelled()]

    @property
    def expired(self) -> List[SubscriptionRecord]:
        return [record for record in self.subscriptions if record.is_expired_at(self.now)]

    @property
    def trial_is_valid(self) -> bool:
        return self.tenant is not None and self.tenant.has_valid_trial(self.now)

    @property
    def trial_has_expired(self) -> bool:
        return self.tenant is not None and self.tenant.has_expired_trial(self.now)

    @property
    def has_stale_trial_flag(self) -> bool:
        return self.tenant is not None and self.tenant.is_in_trial


Predicate = Callable[[ResolutionContext], bool]
Resolution = Callable[[ResolutionContext], ResolvedStatus]


@dataclass(frozen=True)
class StatusRule:
    name: str
    applies: Predicate
    resolve: Resolution
    corrects_trial_flag: bool = False


def _latest(values: Sequence[int]) -> int:
    return max(values)


def _trial_active(ctx: ResolutionContext) -> ResolvedStatus:
    end = ctx.tenant.trial_end_date if ctx.tenant else None
    if end is None:
        days = DEFAULT_TRIAL_DAYS_WITHOUT_END
    else:
        days = TrialClock.days_remaining_ceil(end, ctx.now)
    return ResolvedStatus(
        status_code=StatusCode.TRIAL_ACTIVE,
        message=MESSAGE_TRIAL_ACTIVE.format(days=days),
        has_active_subscription=True,
        is_in_trial=True,
        trial_days_remaining=days,
    )


def _active_subscription(ctx: ResolutionContext) -> ResolvedStatus:
    return ResolvedStatus(
        status_code=StatusCode.ACTIVE_SUBSCRIPTION,
        message=MESSAGE_ACTIVE,
        has_active_subscription=True,
        subscription_end_date=_latest([record.end_date for record in ctx.active_now]),
    )


def _expired(end_date: int) -> ResolvedStatus:
    return ResolvedStatus(
        status_code=StatusCode.SUBSCRIPTION_EXPIRED,
        message=MESSAGE_SUBSCRIPTION_EXPIRED.format(date=format_date(end_date)),
        subscription_expired=True,
        subscription_end_date=end_date,
    )


def _nominally_active_elapsed(ctx: ResolutionContext) -> ResolvedStatus:
    return _expired(_latest([record.end_date for record in ctx.nominally_active]))


def _trial_expired(ctx: ResolutionContext) -> ResolvedStatus:
    return ResolvedStatus(
        status_code=StatusCode.TRIAL_EXPIRED,
        message=MESSAGE_TRIAL_EXPIRED,
        trial_expired=True,
    )


def _cancelled(ctx: ResolutionContext) -> ResolvedStatus:
    return ResolvedStatus(
        status_code=StatusCode.SUBSCRIPTION_CANCELLED,
        message=MESSAGE_CANCELLED,
        subscription_cancelled=True,
        subscription_end_date=_latest(
            [record.cancellation_instant() for record in ctx.cancelled]
        ),
    )


def _expired_record(ctx: ResolutionContext) -> ResolvedStatus:
    return _expired(_latest([record.end_date for record in ctx.expired]))


def _no_subscription(ctx: ResolutionContext) -> ResolvedStatus:
    return ResolvedStatus(
        status_code=StatusCode.NO_SUBSCRIPTION,
        message=MESSAGE_NO_SUBSCRIPTION,
    )


RULES: Tuple[StatusRule, ...] = (
    StatusRule(
        name="active_subscription",
        applies=lambda ctx: bool(ctx.active_now),
        resolve=_active_subscription,
        corrects_trial_flag=True,
    ),
    StatusRule(
        name="trial_valid",
        applies=lambda ctx: ctx.trial_is_valid,
        resolve=_trial_active,
    ),
    StatusRule(
        name="nominally_active_elapsed",
        applies=lambda ctx: bool(ctx.nominally_active),
        resolve=_nominally_active_elapsed,
    ),
    StatusRule(
        name="trial_expired",
        applies=lambda ctx: ctx.trial_has_expired,
        resolve=_trial_expired,
    ),
    StatusRule(
        name="subscription_cancelled",
        applies=lambda ctx: bool(ctx.cancelled),
        resolve=_cancelled,
    ),
    StatusRule(
        name="subscription_expired",
        applies=lambda ctx: bool(ctx.expired),
        resolve=_expired_record,
    ),
    StatusRule(
        name="trial_recheck",
        applies=lambda ctx: ctx.trial_is_valid,
        resolve=_trial_active,
    ),
    StatusRule(
        name="no_subscription",
        applies=lambda ctx: True,
        resolve=_no_subscription,
    ),
)


def evaluate(ctx: ResolutionContext, rules: Sequence[StatusRule] = RULES) -> Tuple[StatusRule, ResolvedStatus]:
    """Return the first matching rule and its resolution."""
    for rule in rules:
        if rule.applies(ctx):
            return rule, rule.resolve(ctx)
    raise LookupError("Rule table has no fallback rule")


__all__ = [
    "DEFAULT_TRIAL_DAYS_WITHOUT_END",
    "MESSAGE_UNVERIFIABLE",
    "RULES",
    "ResolutionContext",
    "StatusRule",
    "evaluate",
]
