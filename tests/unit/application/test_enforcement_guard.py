"""Tests for EnforcementGuard, the reason handoff and the session monitor."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from tenant_access.application.enforcement_guard import (
    DEFAULT_REDIRECT_URL,
    SUBSCRIPTION_ERROR_KEY,
    AccessCheckpoint,
    EnforcementGuard,
    SubscriptionErrorReason,
    read_and_clear_reason,
)
from tenant_access.application.session_monitor import PeriodicTrialSweep, SessionStatusMonitor
from tenant_access.domain.entities import StatusCode
from tenant_access.domain.exceptions import IdentityProviderError, RecordStoreError
from tenant_access.domain.interfaces import IdentitySession
from tenant_access.domain.services.status_rules import MESSAGE_UNVERIFIABLE
from tests.fixtures.tenant_fixtures import DAY, NOW, TenantDocumentBuilder, subscription_document

SESSION = IdentitySession(session_id="sess-1", user_id="user-1", tenant_id="t1", email="owner@test.com")


async def seed_tenant(store, document) -> None:
    await store.upsert("businesses", "t1", document, merge=False)


# ============================================================================
# Guard decisions
# ============================================================================


class TestEnforcedStatuses:

    @pytest.mark.parametrize(
        "builder, subscription, expected_code, expected_title",
        [
            (TenantDocumentBuilder().in_trial(NOW - DAY), None, StatusCode.TRIAL_EXPIRED, "Trial period ended"),
            (
                TenantDocumentBuilder(),
                subscription_document("t1", NOW - 2 * DAY, status="expired"),
                StatusCode.SUBSCRIPTION_EXPIRED,
                "Subscription expired",
            ),
            (
                TenantDocumentBuilder(),
                subscription_document("t1", NOW + 2 * DAY, status="cancelled"),
                StatusCode.SUBSCRIPTION_CANCELLED,
                "Subscription cancelled",
            ),
        ],
    )
    @pytest.mark.parametrize("checkpoint", list(AccessCheckpoint))
    async def test_enforced_status_ends_session(
        self, store, identity, handoff, guard, builder, subscription, expected_code, expected_title, checkpoint
    ):
        await seed_tenant(store, builder.build())
        if subscription is not None:
            await store.upsert("subscriptions", "s1", subscription)
        await identity.sign_in(SESSION)

        decision = await guard.check_access(checkpoint)

        assert decision.allowed is False
        assert decision.session_terminated is True
        assert decision.redirect_url == DEFAULT_REDIRECT_URL
        assert decision.reason.status_code == expected_code
        assert decision.reason.title == expected_title
        assert decision.reason.message == decision.status.message
        assert identity.terminated == ["sess-1"]
        assert await identity.current_session() is None
        stored = SubscriptionErrorReason.from_json(await handoff.get(SUBSCRIPTION_ERROR_KEY))
        assert stored == decision.reason

    async def test_expired_message_names_the_date(self, store, identity, guard):
        await seed_tenant(store, TenantDocumentBuilder().build())
        await store.upsert("subscriptions", "s1", subscription_document("t1", NOW - 2 * DAY, status="active"))
        await identity.sign_in(SESSION)

        decision = await guard.check_access()

        assert "12/11/2023" in decision.reason.message


class TestGrantedStatuses:

    async def test_trial_exposes_days_for_banner(self, store, identity, guard):
        await seed_tenant(store, TenantDocumentBuilder().in_trial(NOW + int(2.5 * DAY)).build())
        await identity.sign_in(SESSION)

        decision = await guard.check_access(AccessCheckpoint.SIGN_IN)

        assert decision.allowed is True
        assert decision.trial_days_remaining == 3
        assert identity.terminated == []

    async def test_active_subscription_has_no_banner(self, store, identity, guard):
        await seed_tenant(store, TenantDocumentBuilder().build())
        await store.upsert("subscriptions", "s1", subscription_document("t1", NOW + 20 * DAY))
        await identity.sign_in(SESSION)

        decision = await guard.check_access()

        assert decision.allowed is True
        assert decision.trial_days_remaining is None

    async def test_no_session_is_allowed(self, guard):
        decision = await guard.check_access()

        assert decision.allowed is True
        assert decision.tenant_id is None


class TestNoSubscriptionCheckpointPolicy:

    async def test_periodic_check_lets_it_through(self, store, identity, handoff, guard):
        await seed_tenant(store, TenantDocumentBuilder().build())
        await identity.sign_in(SESSION)

        decision = await guard.check_access(AccessCheckpoint.PERIODIC)

        assert decision.allowed is True
        assert decision.status.status_code == StatusCode.NO_SUBSCRIPTION
        assert await handoff.get(SUBSCRIPTION_ERROR_KEY) is None

    async def test_sign_in_refuses_it(self, store, identity, guard):
        await seed_tenant(store, TenantDocumentBuilder().build())
        await identity.sign_in(SESSION)

        decision = await guard.check_access(AccessCheckpoint.SIGN_IN)

        assert decision.allowed is False
        assert decision.reason.title == "No active subscription"
        assert identity.terminated == ["sess-1"]


# ============================================================================
# Failure handling
# ============================================================================


class TestFailClosed:

    async def test_resolution_failure_denies_with_generic_reason(self, identity, handoff, status_resolver):
        status_resolver.resolve = AsyncMock(side_effect=RecordStoreError("get", "businesses", "t1"))
        guard = EnforcementGuard(status_resolver, identity, handoff)
        await identity.sign_in(SESSION)

        decision = await guard.check_access()

        assert decision.allowed is False
        assert decision.status is None
        assert decision.reason.message == MESSAGE_UNVERIFIABLE
        assert decision.reason.status_code == StatusCode.NO_SUBSCRIPTION
        assert identity.terminated == ["sess-1"]

    async def test_session_lookup_failure_denies(self, handoff, status_resolver):
        identity = AsyncMock()
        identity.current_session.side_effect = IdentityProviderError("identity down")
        guard = EnforcementGuard(status_resolver, identity, handoff)

        decision = await guard.check_access(AccessCheckpoint.PERIODIC)

        assert decision.allowed is False
        assert decision.session_terminated is False
        assert decision.redirect_url == DEFAULT_REDIRECT_URL
        assert decision.tenant_id is None
        reason = await read_and_clear_reason(handoff)
        assert reason == SubscriptionErrorReason.verification_failed()
        identity.terminate_session.assert_not_awaited()

    async def test_handoff_failure_still_denies(self, store, identity, status_resolver):
        failing_handoff = AsyncMock()
        failing_handoff.set = AsyncMock(side_effect=OSError("storage full"))
        guard = EnforcementGuard(status_resolver, identity, failing_handoff)
        await seed_tenant(store, TenantDocumentBuilder().in_trial(NOW - DAY).build())
        await identity.sign_in(SESSION)

        decision = await guard.check_access()

        assert decision.allowed is False
        assert decision.session_terminated is True

    async def test_termination_failure_is_reported(self, store, handoff, status_resolver):
        identity = AsyncMock()
        identity.current_session = AsyncMock(return_value=SESSION)
        identity.terminate_session = AsyncMock(side_effect=IdentityProviderError("offline"))
        guard = EnforcementGuard(status_resolver, identity, handoff, redirect_url="/plans")
        await seed_tenant(store, TenantDocumentBuilder().in_trial(NOW - DAY).build())

        decision = await guard.check_access()

        assert decision.allowed is False
        assert decision.session_terminated is False
        assert decision.redirect_url == "/plans"
        assert await handoff.get(SUBSCRIPTION_ERROR_KEY) is not None


# ============================================================================
# Reason handoff
# ============================================================================


class TestReasonHandoff:

    async def test_reason_is_read_once(self, handoff):
        reason = SubscriptionErrorReason("Trial period ended", "Your trial period has ended.", StatusCode.TRIAL_EXPIRED)
        await handoff.set(SUBSCRIPTION_ERROR_KEY, reason.to_json())

        assert await read_and_clear_reason(handoff) == reason
        assert await read_and_clear_reason(handoff) is None

    async def test_malformed_reason_is_cleared(self, handoff):
        await handoff.set(SUBSCRIPTION_ERROR_KEY, "{not json")

        assert await read_and_clear_reason(handoff) is None
        assert await handoff.get(SUBSCRIPTION_ERROR_KEY) is None

    @pytest.mark.parametrize(
        "raw",
        ["", "[]", '{"title": "x"}', '{"title": "x", "message": "y", "statusCode": "bogus"}'],
    )
    def test_from_json_rejects_bad_payloads(self, raw):
        assert SubscriptionErrorReason.from_json(raw) is None

    def test_payload_shape(self):
        reason = SubscriptionErrorReason("t", "m", StatusCode.SUBSCRIPTION_CANCELLED)
        assert reason.to_dict() == {"title": "t", "message": "m", "statusCode": "subscription_cancelled"}


# ============================================================================
# Background runners
# ============================================================================


class TestSessionStatusMonitor:

    async def test_sign_in_triggers_check(self, store, identity, guard):
        await seed_tenant(store, TenantDocumentBuilder().in_trial(NOW - DAY).build())
        monitor = SessionStatusMonitor(guard, identity, interval_minutes=10)
        monitor.start()

        await identity.sign_in(SESSION)
        await monitor.shutdown()

        assert monitor.last_decision is not None
        assert monitor.last_decision.checkpoint == AccessCheckpoint.SIGN_IN
        assert monitor.last_decision.allowed is False
        assert identity.terminated == ["sess-1"]
        assert not monitor.is_running

    async def test_no_checks_after_shutdown(self, store, identity, guard):
        await seed_tenant(store, TenantDocumentBuilder().in_trial(NOW - DAY).build())
        monitor = SessionStatusMonitor(guard, identity)
        monitor.start()
        await monitor.shutdown()

        await identity.sign_in(SESSION)

        assert monitor.last_decision is None
        assert identity.terminated == []

    async def test_run_check_records_decision(self, store, identity, guard):
        await seed_tenant(store, TenantDocumentBuilder().in_trial(NOW + DAY).build())
        await identity.sign_in(SESSION)
        monitor = SessionStatusMonitor(guard, identity)

        decision = await monitor.run_check()

        assert decision.allowed is True
        assert monitor.last_decision is decision


    async def test_run_check_denies_when_identity_is_unavailable(self, handoff, status_resolver):
        identity = AsyncMock()
        identity.current_session.side_effect = IdentityProviderError("identity down")
        monitor = SessionStatusMonitor(EnforcementGuard(status_resolver, identity, handoff), identity)

        decision = await monitor.run_check()

        assert decision.allowed is False
        assert monitor.last_decision is decision

class TestPeriodicTrialSweep:

    async def test_disabled_with_zero_interval(self):
        sweep = AsyncMock()
        runner = PeriodicTrialSweep(sweep, interval_minutes=0)

        runner.start()
        await runner.shutdown()

        sweep.assert_not_awaited()

    async def test_runs_on_interval(self, monkeypatch):
        calls = []
        real_sleep = asyncio.sleep

        async def fast_sleep(_seconds):
            await real_sleep(0)

        async def sweep():
            calls.append(True)

        monkeypatch.setattr("tenant_access.application.session_monitor.asyncio.sleep", fast_sleep)
        runner = PeriodicTrialSweep(sweep, interval_minutes=60)
        runner.start()
        for _ in range(10):
            await real_sleep(0)
        await runner.shutdown()

        assert len(calls) >= 1
