"""HTTP-level tests running the FastAPI app over the in-memory engine."""

from collections.abc import AsyncIterator

import httpx
import pytest

from tenant_access.api.v1.access import decode_reason_cookie, encode_reason_cookie
from tenant_access.application.enforcement_guard import SUBSCRIPTION_ERROR_KEY, SubscriptionErrorReason
from tenant_access.domain.entities import StatusCode
from tenant_access.domain.interfaces import IdentitySession
from tenant_access.main import create_app
from tests.fixtures.tenant_fixtures import (
    DAY,
    NOW,
    TenantDocumentBuilder,
    definition,
    plan_document,
    subscription_document,
    trial_config_document,
)

pytestmark = pytest.mark.integration


@pytest.fixture
async def client(settings, container) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(settings, container=container)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


async def test_health_endpoints(client):
    root = await client.get("/health")
    detailed = await client.get("/api/v1/health")

    assert root.status_code == 200
    assert root.json()["environment"] == "test"
    assert detailed.status_code == 200
    assert detailed.json()["components"]["record_store"]["service"] == "MemoryRecordStore"


class TestTenantLifecycleFlow:

    async def test_create_then_resolve_trial(self, client, store):
        await store.upsert(
            "trial_configs", "admin", trial_config_document([definition("p14", 14, is_active=True)])
        )

        created = await client.post("/api/v1/tenants", json={"name": "Acme", "email": "owner@acme.test"})
        assert created.status_code == 201
        tenant_id = created.json()["tenant_id"]

        status = await client.get(f"/api/v1/access/status/{tenant_id}")
        assert status.status_code == 200
        body = status.json()
        assert body["status_code"] == "trial_active"
        assert body["trial_days_remaining"] == 14
        assert body["has_active_subscription"] is True

        remaining = await client.get(f"/api/v1/access/trial-remaining/{tenant_id}")
        assert remaining.json() == {"days": 14, "hours": 0, "minutes": 0}

        login = await client.get(f"/api/v1/access/login-check/{tenant_id}")
        assert login.json()["can_login"] is True

    async def test_create_rejects_blank_name(self, client):
        response = await client.post("/api/v1/tenants", json={"name": ""})
        assert response.status_code == 422

    async def test_convert_and_cancel(self, client, store):
        await store.upsert("businesses", "t1", TenantDocumentBuilder().in_trial(NOW + DAY).build())
        await store.upsert("subscription_plans", "monthly", plan_document("Monthly", "monthly"))

        converted = await client.post("/api/v1/tenants/t1/convert", json={"plan_id": "monthly"})
        assert converted.json() == {"success": True}

        status = (await client.get("/api/v1/access/status/t1")).json()
        assert status["status_code"] == "active_subscription"

        subscription_id = next(iter(store.snapshot("subscriptions")))
        cancelled = await client.post(f"/api/v1/subscriptions/{subscription_id}/cancel")
        assert cancelled.status_code == 200

        status = (await client.get("/api/v1/access/status/t1")).json()
        assert status["status_code"] == "subscription_cancelled"

    async def test_convert_unknown_plan_is_404(self, client, store):
        await store.upsert("businesses", "t1", TenantDocumentBuilder().in_trial(NOW + DAY).build())

        response = await client.post("/api/v1/tenants/t1/convert", json={"plan_id": "ghost"})

        assert response.status_code == 404

    async def test_extend_validation_and_not_found(self, client, store):
        negative = await client.post("/api/v1/tenants/t1/trial/extend", json={"additional_days": -1})
        missing = await client.post("/api/v1/tenants/ghost/trial/extend", json={"additional_days": 3})

        assert negative.status_code == 422
        assert missing.status_code == 404

    async def test_extend_expired_trial(self, client, store):
        await store.upsert("businesses", "t1", TenantDocumentBuilder().in_trial(NOW - DAY).build())

        response = await client.post("/api/v1/tenants/t1/trial/extend", json={"additional_days": 3})

        assert response.status_code == 200
        status = (await client.get("/api/v1/access/status/t1")).json()
        assert status["status_code"] == "trial_active"
        assert status["trial_days_remaining"] == 2

    async def test_trial_remaining_for_paid_tenant_is_404(self, client, store):
        await store.upsert("businesses", "t1", TenantDocumentBuilder().build())

        response = await client.get("/api/v1/access/trial-remaining/t1")

        assert response.status_code == 404

    async def test_sweep_endpoint(self, client, store):
        await store.upsert("businesses", "t1", TenantDocumentBuilder().in_trial(NOW - DAY).build())

        report = (await client.post("/api/v1/trials/sweep")).json()

        assert report["expired"] == ["t1"]
        assert store.snapshot("businesses")["t1"]["isInTrial"] is False


class TestTrialConfigEndpoints:

    async def test_put_then_get(self, client):
        payload = {
            "enable_trials": True,
            "active_trial_id": "p7",
            "trial_periods": [{"id": "p7", "name": "One week", "days": 7}],
        }

        saved = await client.put("/api/v1/trial-configs/admin", json=payload)
        fetched = await client.get("/api/v1/trial-configs/tenant-without-own-config")
        active = await client.get("/api/v1/trial-configs/admin/active")

        assert saved.status_code == 200
        assert saved.json()["last_modified"] == NOW
        assert fetched.json()["trial_periods"][0]["id"] == "p7"
        assert active.json()["days"] == 7

    async def test_invalid_config_is_400(self, client):
        payload = {"enable_trials": True, "active_trial_id": "nope", "trial_periods": [{"id": "p7", "days": 7}]}

        response = await client.put("/api/v1/trial-configs/admin", json=payload)

        assert response.status_code == 400

    async def test_missing_config_is_404(self, client):
        assert (await client.get("/api/v1/trial-configs/admin")).status_code == 404
        assert (await client.get("/api/v1/trial-configs/admin/active")).status_code == 404

    async def test_reapply(self, client, store):
        await store.upsert(
            "trial_configs", "admin", trial_config_document([definition("p10", 10, is_active=True)])
        )
        await store.upsert(
            "businesses", "t1", TenantDocumentBuilder().in_trial(NOW + DAY, start=NOW - DAY).build()
        )

        response = await client.post("/api/v1/trials/reapply", json={})

        assert response.json() == {"updated": 1}
        assert store.snapshot("businesses")["t1"]["trialEndDate"] == NOW + 9 * DAY


class TestEnforcementFlow:

    SESSION = IdentitySession(session_id="sess-1", user_id="user-1", tenant_id="t1")

    async def test_denied_session_redirects_with_single_read_reason(self, client, store, identity, container):
        await store.upsert("businesses", "t1", TenantDocumentBuilder().in_trial(NOW - DAY).build())
        await identity.sign_in(self.SESSION)

        denied = await client.post("/api/v1/access/check", json={"checkpoint": "periodic"})

        assert denied.status_code == 303
        assert denied.headers["location"] == "/#/subscription-plans"
        assert identity.terminated == ["sess-1"]
        cookie_value = denied.cookies.get(SUBSCRIPTION_ERROR_KEY)
        assert decode_reason_cookie(cookie_value).status_code == StatusCode.TRIAL_EXPIRED

        client.cookies.clear()
        first = await client.get(
            "/api/v1/access/subscription-error",
            headers={"Cookie": f"{SUBSCRIPTION_ERROR_KEY}={cookie_value}"},
        )
        assert first.json()["title"] == "Trial period ended"
        assert first.json()["statusCode"] == "trial_expired"
        assert await container.handoff.get(SUBSCRIPTION_ERROR_KEY) is None

        client.cookies.clear()
        second = await client.get("/api/v1/access/subscription-error")
        assert second.json() is None

    async def test_allowed_session_gets_decision(self, client, store, identity):
        await store.upsert("businesses", "t1", TenantDocumentBuilder().in_trial(NOW + 2 * DAY).build())
        await identity.sign_in(self.SESSION)

        response = await client.post("/api/v1/access/check", json={"checkpoint": "sign_in"})

        assert response.status_code == 200
        assert response.json()["allowed"] is True
        assert response.json()["trial_days_remaining"] == 2

    async def test_no_session_is_allowed(self, client):
        response = await client.post("/api/v1/access/check")

        assert response.status_code == 200
        assert response.json()["allowed"] is True

    async def test_handoff_store_is_read_without_cookie(self, client, store, identity):
        await store.upsert(
            "subscriptions", "s1", subscription_document("t1", NOW + DAY, status="cancelled")
        )
        await store.upsert("businesses", "t1", TenantDocumentBuilder().build())
        await identity.sign_in(self.SESSION)

        await client.post("/api/v1/access/check")
        client.cookies.clear()
        reason = await client.get("/api/v1/access/subscription-error")

        assert reason.json()["statusCode"] == "subscription_cancelled"


class TestReasonCookie:

    def test_cookie_value_is_unpadded_base64url(self):
        reason = SubscriptionErrorReason("Trial period ended", "Ended.", StatusCode.TRIAL_EXPIRED)

        value = encode_reason_cookie(reason)

        assert "=" not in value
        assert decode_reason_cookie(value) == reason

    @pytest.mark.parametrize("value", ["***", "bm90IGpzb24"])
    def test_garbage_cookie_is_ignored(self, value):
        assert decode_reason_cookie(value) is None
