"""Access-status resolution with best-effort correction of stale trial flags."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Set

import structlog

from tenant_access.domain.entities.access_status import ResolvedStatus, StatusCode
from tenant_access.domain.events.base import IDomainEventPublisher
from tenant_access.domain.events.trial_events import TrialStatusCorrectedEvent
from tenant_access.domain.repositories.subscription_repository import ISubscriptionRepository
from tenant_access.domain.repositories.tenant_repository import ITenantRepository
from tenant_access.domain.services.status_rules import (
    MESSAGE_UNVERIFIABLE,
    RULES,
    ResolutionContext,
    StatusRule,
    evaluate,
)
from tenant_access.domain.services.time_normalizer import TimeNormalizer

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoginCheck:
    """Whether a tenant's users may sign in, with the message to show."""

    can_login: bool
    message: str
    status_code: StatusCode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "canLogin": self.can_login,
            "message": self.message,
            "statusCode": self.status_code.value,
        }


class StatusResolver:
    """Resolves one tenant's access status at the current instant.

    The tenant and its subscription records are read once per call and the
    rule table is evaluated against that snapshot. When a current paid
    subscription coexists with a set trial flag, a correcting write is
    scheduled in the background; the returned status never waits for it.
    """

    def __init__(
        self,
        tenants: ITenantRepository,
        subscriptions: ISubscriptionRepository,
        normalizer: TimeNormalizer,
        event_publisher: Optional[IDomainEventPublisher] = None,
        rules: Sequence[StatusRule] = RULES,
    ) -> None:
        self._tenants = tenants
        self._subscriptions = subscriptions
        self._normalizer = normalizer
        self._event_publisher = event_publisher
        self._rules = rules
        self._pending: Set[asyncio.Task] = set()

    async def resolve(self, tenant_id: str) -> ResolvedStatus:
        """Resolve the access status of ``tenant_id``.

        Raises:
            RecordStoreError: when the tenant or its records cannot be read.
        """
        now = self._normalizer.now_ms()
        tenant = await self._tenants.get_by_id(tenant_id)
        records = await self._subscriptions.list_for_tenant(tenant_id)

        context = ResolutionContext(tenant=tenant, subscriptions=tuple(records), now=now)
        rule, status = evaluate(context, self._rules)

        if rule.corrects_trial_flag and context.has_stale_trial_flag:
            self._schedule_trial_flag_correction(tenant_id, status.subscription_end_date, now)

        logger.debug(
            "Access status resolved",
            tenant_id=tenant_id,
            tenant_found=tenant is not None,
            subscriptions=len(records),
            rule=rule.name,
            status_code=status.status_code.value,
        )
        return status

    async def can_user_login(self, tenant_id: str) -> LoginCheck:
        """Login gate; never raises, a failed lookup denies access."""
        try:
            status = await self.resolve(tenant_id)
        except Exception as exc:
            logger.error("Login check failed", tenant_id=tenant_id, error=str(exc))
            return LoginCheck(
                can_login=False,
                message=MESSAGE_UNVERIFIABLE,
                status_code=StatusCode.NO_SUBSCRIPTION,
            )

        if not status.grants_access:
            logger.info(
                "Login refused",
                tenant_id=tenant_id,
                status_code=status.status_code.value,
            )
        return LoginCheck(
            can_login=status.grants_access,
            message=status.message,
            status_code=status.status_code,
        )

    @property
    def pending_corrections(self) -> int:
        return len(self._pending)

    async def drain_pending_corrections(self) -> None:
        """Wait for every scheduled correction to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule_trial_flag_correction(
        self, tenant_id: str, subscription_end_date: Optional[int], now: int
    ) -> None:
        task = asyncio.create_task(
            self._correct_trial_flag(tenant_id, subscription_end_date, now)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _correct_trial_flag(
        self, tenant_id: str, subscription_end_date: Optional[int], now: int
    ) -> None:
        # Unconditional merge; repeating it leaves the same document.
        try:
            await self._tenants.update_fields(
                tenant_id, {"is_in_trial": False, "updated_at": now}
            )
        except Exception as exc:
            logger.warning(
                "Failed to clear stale trial flag",
                tenant_id=tenant_id,
                error=str(exc),
            )
            return

        logger.info("Stale trial flag cleared", tenant_id=tenant_id)
        if self._event_publisher is None or subscription_end_date is None:
            return
        try:
            await self._event_publisher.publish(
                TrialStatusCorrectedEvent(
                    tenant_id=tenant_id,
                    occurred_at=now,
                    subscription_end_date=subscription_end_date,
                )
            )
        except Exception as exc:
            logger.warning(
                "Failed to publish trial correction event",
                tenant_id=tenant_id,
                error=str(exc),
            )


__all__ = ["LoginCheck", "StatusResolver"]
