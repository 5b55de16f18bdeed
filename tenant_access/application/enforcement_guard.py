"""
Enforcement of resolved access statuses against live sessions.

A session whose tenant no longer qualifies is terminated, and the reason is
written to a handoff store under a well-known key so the landing page can show
it once after the redirect.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from tenant_access.application.status_resolver import StatusResolver
from tenant_access.domain.entities.access_status import ResolvedStatus, StatusCode
from tenant_access.domain.interfaces import IdentitySession, IHandoffStore, IIdentityProvider
from tenant_access.domain.services.status_rules import MESSAGE_UNVERIFIABLE

logger = structlog.get_logger(__name__)

SUBSCRIPTION_ERROR_KEY = "subscription_error"
DEFAULT_REDIRECT_URL = "/#/subscription-plans"

TITLES = {
    StatusCode.SUBSCRIPTION_EXPIRED: "Subscription expired",
    StatusCode.SUBSCRIPTION_CANCELLED: "Subscription cancelled",
    StatusCode.TRIAL_EXPIRED: "Trial period ended",
    StatusCode.NO_SUBSCRIPTION: "No active subscription",
}
FALLBACK_MESSAGES = {
    StatusCode.SUBSCRIPTION_EXPIRED: (
        "Your subscription has expired. Please renew it to keep using the application."
    ),
    StatusCode.SUBSCRIPTION_CANCELLED: (
        "Your subscription has been cancelled. Please choose a new plan to keep using the application."
    ),
    StatusCode.TRIAL_EXPIRED: (
        "Your trial period has ended. Please choose a plan to keep using the application."
    ),
}
VERIFICATION_FAILED_TITLE = "Subscription check failed"


class AccessCheckpoint(str, Enum):
    """Where a check runs; ``no_subscription`` is refused only at sign-in."""

    SIGN_IN = "sign_in"
    PERIODIC = "periodic"


@dataclass(frozen=True)
class SubscriptionErrorReason:
    """The denial reason carried across the redirect."""

    title: str
    message: str
    status_code: StatusCode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "statusCode": self.status_code.value,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> Optional["SubscriptionErrorReason"]:
        """Parse a stored reason; malformed payloads yield ``None``."""
        try:
            data = json.loads(raw)
            return cls(
                title=str(data["title"]),
                message=str(data["message"]),
                status_code=StatusCode(data["statusCode"]),
            )
        except (TypeError, ValueError, KeyError):
            return None

    @classmethod
    def for_status(cls, status: ResolvedStatus) -> "SubscriptionErrorReason":
        code = status.status_code
        return cls(
            title=TITLES.get(code, TITLES[StatusCode.NO_SUBSCRIPTION]),
            message=status.message or FALLBACK_MESSAGES.get(code, ""),
            status_code=code,
        )

    @classmethod
    def verification_failed(cls) -> "SubscriptionErrorReason":
        return cls(
            title=VERIFICATION_FAILED_TITLE,
            message=MESSAGE_UNVERIFIABLE,
            status_code=StatusCode.NO_SUBSCRIPTION,
        )


@dataclass(frozen=True)
class AccessDecision:
    """Result of one guard run."""

    allowed: bool
    checkpoint: AccessCheckpoint
    tenant_id: Optional[str] = None
    status: Optional[ResolvedStatus] = None
    reason: Optional[SubscriptionErrorReason] = None
    redirect_url: Optional[str] = None
    session_terminated: bool = False

    @property
    def trial_days_remaining(self) -> Optional[int]:
        """Days left for the non-blocking trial banner."""
        if self.status is None or self.status.status_code != StatusCode.TRIAL_ACTIVE:
            return None
        return self.status.trial_days_remaining


class EnforcementGuard:
    """Checks the current session and ends it when its tenant may not continue."""

    def __init__(
        self,
        resolver: StatusResolver,
        identity: IIdentityProvider,
        handoff: IHandoffStore,
        redirect_url: str = DEFAULT_REDIRECT_URL,
        error_key: str = SUBSCRIPTION_ERROR_KEY,
    ) -> None:
        self._resolver = resolver
        self._identity = identity
        self._handoff = handoff
        self._redirect_url = redirect_url
        self._error_key = error_key

    @property
    def error_key(self) -> str:
        return self._error_key

    async def check_access(
        self, checkpoint: AccessCheckpoint = AccessCheckpoint.PERIODIC
    ) -> AccessDecision:
        try:
            session = await self._identity.current_session()
        except Exception as exc:
            logger.error(
                "Session lookup failed, denying access",
                checkpoint=checkpoint.value,
                error=str(exc),
            )
            reason = SubscriptionErrorReason.verification_failed()
            await self._store_reason(reason, None)
            return AccessDecision(
                allowed=False,
                checkpoint=checkpoint,
                reason=reason,
                redirect_url=self._redirect_url,
                session_terminated=False,
            )
        if session is None:
            return AccessDecision(allowed=True, checkpoint=checkpoint)

        try:
            status = await self._resolver.resolve(session.tenant_id)
        except Exception as exc:
            logger.error(
                "Subscription status check failed, denying access",
                tenant_id=session.tenant_id,
                checkpoint=checkpoint.value,
                error=str(exc),
            )
            return await self._deny(
                session, checkpoint, SubscriptionErrorReason.verification_failed(), None
            )

        if status.is_enforced or (
            status.status_code == StatusCode.NO_SUBSCRIPTION
            and checkpoint == AccessCheckpoint.SIGN_IN
        ):
            return await self._deny(
                session, checkpoint, SubscriptionErrorReason.for_status(status), status
            )

        logger.debug(
            "Access granted",
            tenant_id=session.tenant_id,
            checkpoint=checkpoint.value,
            status_code=status.status_code.value,
        )
        return AccessDecision(
            allowed=True,
            checkpoint=checkpoint,
            tenant_id=session.tenant_id,
            status=status,
        )

    async def _deny(
        self,
        session: IdentitySession,
        checkpoint: AccessCheckpoint,
        reason: SubscriptionErrorReason,
        status: Optional[ResolvedStatus],
    ) -> AccessDecision:
        logger.info(
            "Access denied, ending session",
            tenant_id=session.tenant_id,
            session_id=session.session_id,
            checkpoint=checkpoint.value,
            status_code=reason.status_code.value,
        )

        await self._store_reason(reason, session.tenant_id)

        terminated = True
        try:
            await self._identity.terminate_session(session.session_id)
        except Exception as exc:
            terminated = False
            logger.error(
                "Failed to terminate session",
                session_id=session.session_id,
                error=str(exc),
            )

        return AccessDecision(
            allowed=False,
            checkpoint=checkpoint,
            tenant_id=session.tenant_id,
            status=status,
            reason=reason,
            redirect_url=self._redirect_url,
            session_terminated=terminated,
        )

    async def _store_reason(self, reason: SubscriptionErrorReason, tenant_id: Optional[str]) -> None:
        try:
            await self._handoff.set(self._error_key, reason.to_json())
        except Exception as exc:
            logger.error("Failed to store denial reason", tenant_id=tenant_id, error=str(exc))


async def read_and_clear_reason(
    store: IHandoffStore, key: str = SUBSCRIPTION_ERROR_KEY
) -> Optional[SubscriptionErrorReason]:
    """Single-read contract of the landing page: the reason is removed once read."""
    raw = await store.get(key)
    if raw is None:
        return None
    await store.delete(key)
    return SubscriptionErrorReason.from_json(raw)


__all__ = [
    "AccessCheckpoint",
    "AccessDecision",
    "DEFAULT_REDIRECT_URL",
    "EnforcementGuard",
    "SUBSCRIPTION_ERROR_KEY",
    "SubscriptionErrorReason",
    "read_and_clear_reason",
]
