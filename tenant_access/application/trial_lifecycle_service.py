"""Application service owning the trial lifecycle of tenants."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog
from dateutil.relativedelta import relativedelta

from tenant_access.application.config_resolver import ConfigResolver
from tenant_access.domain.entities.subscription import (
    BillingCycle,
    SubscriptionRecord,
    SubscriptionStatus,
)
from tenant_access.domain.entities.tenant import Tenant, TenantDraft
from tenant_access.domain.events.base import IDomainEventPublisher
from tenant_access.domain.events.trial_events import (
    TrialConvertedEvent,
    TrialExpiredEvent,
    TrialExtendedEvent,
    TrialStartedEvent,
)
from tenant_access.domain.exceptions import ValidationError
from tenant_access.domain.interfaces import ITrialNotifier, TrialNotice, TrialNoticeKind
from tenant_access.domain.repositories.subscription_repository import (
    IPlanRepository,
    ISubscriptionRepository,
)
from tenant_access.domain.repositories.tenant_repository import ITenantRepository
from tenant_access.domain.services.time_normalizer import (
    MILLIS_PER_DAY,
    MILLIS_PER_SECOND,
    TimeNormalizer,
    format_date,
    to_datetime,
)
from tenant_access.domain.services.trial_clock import TrialClock
from tenant_access.domain.value_objects import TrialDuration, TrialProvenance, TrialRemaining

logger = structlog.get_logger(__name__)

CONVERSION_NOTE = "Converted from trial period"
FALLBACK_SUBSCRIPTION_DAYS = 30


@dataclass
class SweepReport:
    """Outcome of one pass of the trial expiry sweep."""

    examined: int = 0
    expired: List[str] = field(default_factory=list)
    final_notices: List[str] = field(default_factory=list)
    reminders: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed_notices: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "examined": self.examined,
            "expired": list(self.expired),
            "finalNotices": list(self.final_notices),
            "reminders": list(self.reminders),
            "skipped": list(self.skipped),
            "failedNotices": list(self.failed_notices),
        }


def add_calendar_months(millis: int, months: int) -> int:
    """Shift an instant by whole calendar months, clamping to the month's last day."""
    shifted = to_datetime(millis) + relativedelta(months=months)
    return calendar.timegm(shifted.utctimetuple()) * MILLIS_PER_SECOND + shifted.microsecond // 1000


def subscription_end_for(start: int, billing_cycle: Optional[str]) -> int:
    if billing_cycle == BillingCycle.MONTHLY.value:
        return add_calendar_months(start, 1)
    if billing_cycle == BillingCycle.YEARLY.value:
        return add_calendar_months(start, 12)
    return start + FALLBACK_SUBSCRIPTION_DAYS * MILLIS_PER_DAY


class TrialLifecycleManager:
    """Creates, extends, converts, reapplies and expires tenant trials.

    Expected absences (unknown tenant, plan or subscription) are reported as
    ``False``/``None``; store failures propagate to the caller.
    """

    def __init__(
        self,
        tenants: ITenantRepository,
        subscriptions: ISubscriptionRepository,
        plans: IPlanRepository,
        config_resolver: ConfigResolver,
        normalizer: TimeNormalizer,
        notifier: ITrialNotifier,
        event_publisher: IDomainEventPublisher,
        reminder_days: int = 3,
        final_notice_days: int = 1,
    ) -> None:
        self._tenants = tenants
        self._subscriptions = subscriptions
        self._plans = plans
        self._config_resolver = config_resolver
        self._normalizer = normalizer
        self._notifier = notifier
        self._event_publisher = event_publisher
        self._reminder_days = reminder_days
        self._final_notice_days = final_notice_days

    async def create_tenant_with_trial(
        self, draft: TenantDraft, scope_id: Optional[str] = None
    ) -> str:
        """Create a tenant whose trial starts now.

        Args:
            draft: Identity and contact fields of the new tenant
            scope_id: Trial configuration scope; the global scope when omitted

        Returns:
            The new tenant id
        """
        if not draft.name or not draft.name.strip():
            raise ValidationError("Tenant name is required")

        now = self._normalizer.now_ms()
        duration = await self._config_resolver.resolve_trial_duration(scope_id)
        end = TrialClock.compute_end_instant(now, duration.days, duration.minutes)

        tenant = Tenant(
            id="",
            name=draft.name.strip(),
            created_at=now,
            email=draft.email,
            contact_name=draft.contact_name,
            phone=draft.phone,
            business_id=draft.business_id,
            metadata=dict(draft.metadata),
        )
        tenant.start_trial(now, end, _provenance(duration, end))
        tenant = await self._tenants.create(tenant)

        logger.info(
            "Tenant created with trial",
            tenant_id=tenant.id,
            trial_days=duration.days,
            trial_minutes=duration.minutes,
            source=duration.source,
            trial_end_date=end,
        )
        await self._event_publisher.publish(
            TrialStartedEvent(
                tenant_id=tenant.id,
                occurred_at=now,
                trial_start_date=now,
                trial_end_date=end,
                duration_days=duration.days,
                duration_minutes=duration.minutes,
                source=duration.source,
                definition_id=duration.definition_id,
            )
        )
        return tenant.id

    async def extend_trial_period(
        self, tenant_id: str, additional_days: int, additional_minutes: int = 0
    ) -> bool:
        """Push the trial end back; the tenant always re-enters the trial state.

        Paid tenants are not guarded: extending one puts it back in trial.
        """
        if additional_days < 0 or additional_minutes < 0:
            raise ValidationError("Trial extension cannot be negative")

        tenant = await self._tenants.get_by_id(tenant_id)
        if tenant is None:
            logger.warning("Cannot extend trial of unknown tenant", tenant_id=tenant_id)
            return False

        now = self._normalizer.now_ms()
        previous_end = tenant.trial_end_date
        base = previous_end if previous_end is not None else now
        new_end = TrialClock.compute_end_instant(base, additional_days, additional_minutes)

        tenant.extend_trial(new_end, now)
        await self._tenants.update_fields(
            tenant_id,
            {
                "trial_end_date": tenant.trial_end_date,
                "is_in_trial": tenant.is_in_trial,
                "status": tenant.status,
                "updated_at": tenant.updated_at,
            },
        )

        logger.info(
            "Trial extended",
            tenant_id=tenant_id,
            previous_end_date=previous_end,
            new_end_date=new_end,
            additional_days=additional_days,
            additional_minutes=additional_minutes,
        )
        await self._event_publisher.publish(
            TrialExtendedEvent(
                tenant_id=tenant_id,
                occurred_at=now,
                previous_end_date=previous_end,
                new_end_date=new_end,
                additional_days=additional_days,
                additional_minutes=additional_minutes,
            )
        )
        return True

    async def convert_trial_to_subscription(self, tenant_id: str, plan_id: str) -> bool:
        """Replace the tenant's trial with an active subscription to ``plan_id``."""
        tenant = await self._tenants.get_by_id(tenant_id)
        if tenant is None:
            logger.warning("Cannot convert trial of unknown tenant", tenant_id=tenant_id)
            return False

        plan = await self._plans.get_by_id(plan_id)
        if plan is None:
            logger.warning("Cannot convert trial to unknown plan", tenant_id=tenant_id, plan_id=plan_id)
            return False

        now = self._normalizer.now_ms()
        record = await self._subscriptions.add(
            SubscriptionRecord(
                id=None,
                tenant_id=tenant_id,
                plan_id=plan.id,
                start_date=now,
                end_date=subscription_end_for(now, plan.billing_cycle),
                status=SubscriptionStatus.ACTIVE.value,
                auto_renew=True,
                created_at=now,
                updated_at=now,
                price=plan.price,
                currency=plan.currency,
                billing_cycle=plan.billing_cycle,
                notes=CONVERSION_NOTE,
            )
        )

        tenant.convert_to_paid(plan.id, now)
        await self._tenants.update_fields(
            tenant_id,
            {
                "is_in_trial": tenant.is_in_trial,
                "status": tenant.status,
                "subscription_plan_id": tenant.subscription_plan_id,
                "subscription_start_date": tenant.subscription_start_date,
                "updated_at": tenant.updated_at,
            },
        )

        logger.info(
            "Trial converted to subscription",
            tenant_id=tenant_id,
            plan_id=plan.id,
            subscription_id=record.id,
            end_date=record.end_date,
        )
        await self._event_publisher.publish(
            TrialConvertedEvent(
                tenant_id=tenant_id,
                occurred_at=now,
                plan_id=plan.id,
                subscription_id=record.id or "",
                subscription_end_date=record.end_date,
            )
        )
        return True

    async def sweep_expiring_trials(self) -> SweepReport:
        """Expire elapsed trials and hand out closing-soon and final notices.

        Tenants without a trial end date are skipped. Notice delivery failures
        are logged and reported; they do not stop the sweep.
        """
        now = self._normalizer.now_ms()
        final_horizon = now + self._final_notice_days * MILLIS_PER_DAY
        reminder_horizon = now + self._reminder_days * MILLIS_PER_DAY
        report = SweepReport()

        for tenant in await self._tenants.list_in_trial():
            report.examined += 1
            end = tenant.trial_end_date
            if end is None:
                report.skipped.append(tenant.id)
                continue

            if end < now:
                tenant.expire_trial(now)
                await self._tenants.update_fields(
                    tenant.id,
                    {
                        "is_in_trial": tenant.is_in_trial,
                        "status": tenant.status,
                        "trial_expired_at": tenant.trial_expired_at,
                        "updated_at": tenant.updated_at,
                    },
                )
                report.expired.append(tenant.id)
                logger.info("Trial expired", tenant_id=tenant.id, trial_end_date=end)
                await self._event_publisher.publish(
                    TrialExpiredEvent(tenant_id=tenant.id, occurred_at=now, trial_end_date=end)
                )
                await self._send_notice(report, tenant, TrialNoticeKind.EXPIRED, end, 0)
            elif now < end <= final_horizon:
                days = TrialClock.days_remaining_ceil(end, now)
                if await self._send_notice(report, tenant, TrialNoticeKind.FINAL, end, days):
                    report.final_notices.append(tenant.id)
            elif final_horizon < end <= reminder_horizon:
                days = TrialClock.days_remaining_ceil(end, now)
                if await self._send_notice(report, tenant, TrialNoticeKind.CLOSING_SOON, end, days):
                    report.reminders.append(tenant.id)

        logger.info(
            "Trial sweep completed",
            examined=report.examined,
            expired=len(report.expired),
            final_notices=len(report.final_notices),
            reminders=len(report.reminders),
            skipped=len(report.skipped),
        )
        return report

    async def apply_trial_period(
        self, tenant_id: str, period_id: Optional[str] = None
    ) -> bool:
        """Restart a tenant's trial from now using a named or the applicable definition."""
        tenant = await self._tenants.get_by_id(tenant_id)
        if tenant is None:
            logger.warning("Cannot apply trial to unknown tenant", tenant_id=tenant_id)
            return False

        if period_id is None:
            duration = await self._config_resolver.resolve_trial_duration(tenant_id)
        else:
            config = await self._config_resolver.get_config(tenant_id)
            definition = config.find_definition(period_id) if config else None
            if definition is None:
                logger.warning(
                    "Unknown trial period definition",
                    tenant_id=tenant_id,
                    period_id=period_id,
                )
                return False
            duration = TrialDuration(
                days=definition.days,
                minutes=definition.minutes,
                definition_id=definition.id,
                definition_name=definition.name,
                source="explicit",
            )

        now = self._normalizer.now_ms()
        end = TrialClock.compute_end_instant(now, duration.days, duration.minutes)
        tenant.start_trial(now, end, _provenance(duration, end))
        await self._tenants.update_fields(
            tenant_id,
            {
                "trial_start_date": tenant.trial_start_date,
                "trial_end_date": tenant.trial_end_date,
                "is_in_trial": tenant.is_in_trial,
                "status": tenant.status,
                "trial_info": tenant.trial_info,
                "updated_at": tenant.updated_at,
            },
        )

        logger.info(
            "Trial period applied",
            tenant_id=tenant_id,
            definition_id=duration.definition_id,
            trial_end_date=end,
        )
        await self._event_publisher.publish(
            TrialStartedEvent(
                tenant_id=tenant_id,
                occurred_at=now,
                trial_start_date=now,
                trial_end_date=end,
                duration_days=duration.days,
                duration_minutes=duration.minutes,
                source=duration.source,
                definition_id=duration.definition_id,
            )
        )
        return True

    async def reapply_active_period_to_trials(self, scope_id: Optional[str] = None) -> int:
        """Recompute every trialing tenant's end date from the applicable definition.

        Returns the number of tenants updated; zero when no definition applies.
        """
        definition = await self._config_resolver.resolve_active_definition(scope_id)
        if definition is None:
            logger.warning("No applicable trial definition to reapply", scope_id=scope_id)
            return 0

        duration = TrialDuration(
            days=definition.days,
            minutes=definition.minutes,
            definition_id=definition.id,
            definition_name=definition.name,
            source="reapplied",
        )
        now = self._normalizer.now_ms()
        updated = 0
        for tenant in await self._tenants.list_in_trial():
            start = tenant.trial_start_date if tenant.trial_start_date is not None else now
            end = TrialClock.compute_end_instant(start, duration.days, duration.minutes)
            await self._tenants.update_fields(
                tenant.id,
                {
                    "trial_start_date": start,
                    "trial_end_date": end,
                    "trial_info": _provenance(duration, end),
                    "updated_at": now,
                },
            )
            updated += 1

        logger.info(
            "Trial definition reapplied",
            scope_id=scope_id,
            definition_id=definition.id,
            updated=updated,
        )
        return updated

    async def get_remaining_trial_time(self, tenant_id: str) -> Optional[TrialRemaining]:
        """Floor breakdown of the time left; ``None`` when the tenant is not trialing."""
        tenant = await self._tenants.get_by_id(tenant_id)
        if tenant is None or not tenant.is_in_trial or tenant.trial_end_date is None:
            return None
        return TrialClock.remaining(tenant.trial_end_date, self._normalizer.now_ms())

    async def cancel_subscription(self, subscription_id: str) -> bool:
        record = await self._subscriptions.get_by_id(subscription_id)
        if record is None:
            logger.warning("Cannot cancel unknown subscription", subscription_id=subscription_id)
            return False

        record.cancel(self._normalizer.now_ms())
        await self._subscriptions.save(record)
        logger.info(
            "Subscription cancelled",
            subscription_id=subscription_id,
            tenant_id=record.tenant_id,
        )
        return True

    async def _send_notice(
        self,
        report: SweepReport,
        tenant: Tenant,
        kind: TrialNoticeKind,
        end: int,
        days_remaining: int,
    ) -> bool:
        notice = TrialNotice(
            kind=kind,
            tenant_id=tenant.id,
            trial_end_date=end,
            days_remaining=days_remaining,
            email=tenant.email,
            tenant_name=tenant.name,
            data={"formattedEndDate": format_date(end)},
        )
        try:
            delivered = await self._notifier.notify(notice)
        except Exception as exc:
            logger.error(
                "Trial notice delivery failed",
                tenant_id=tenant.id,
                kind=kind.value,
                error=str(exc),
            )
            delivered = False

        if not delivered:
            report.failed_notices.append(tenant.id)
        return delivered


def _provenance(duration: TrialDuration, end: int) -> TrialProvenance:
    return TrialProvenance(
        duration_days=duration.days,
        duration_minutes=duration.minutes,
        config_id=duration.definition_id,
        period_name=duration.definition_name,
        source=duration.source,
        formatted_end_date=format_date(end),
    )


__all__ = [
    "CONVERSION_NOTE",
    "SweepReport",
    "TrialLifecycleManager",
    "add_calendar_months",
    "subscription_end_for",
]
