"""Tests for the in-memory adapters: record store, identity, handoff and events."""

from dataclasses import dataclass, field

import pytest

from tenant_access.domain.events.base import DomainEvent
from tenant_access.domain.interfaces import IdentitySession
from tenant_access.infrastructure.adapters import (
    LocalIdentityProvider,
    LoggingEventPublisher,
    MemoryHandoffStore,
    MemoryRecordStore,
)


@pytest.fixture
def seeded_store() -> MemoryRecordStore:
    return MemoryRecordStore(
        {
            "subscriptions": {
                "a": {"clientId": "t1", "status": "active", "endDate": 300},
                "b": {"clientId": "t1", "status": "expired", "endDate": 100},
                "c": {"clientId": "t1", "status": "active"},
                "d": {"clientId": "t2", "status": "active", "endDate": 200},
            }
        }
    )


class TestMemoryRecordStore:

    async def test_get_includes_id(self, seeded_store):
        document = await seeded_store.get("subscriptions", "a")
        assert document == {"id": "a", "clientId": "t1", "status": "active", "endDate": 300}

    async def test_get_missing(self, seeded_store):
        assert await seeded_store.get("subscriptions", "zzz") is None
        assert await seeded_store.get("nothing", "a") is None

    async def test_query_filters_by_equality(self, seeded_store):
        results = await seeded_store.query("subscriptions", {"clientId": "t1", "status": "active"})
        assert sorted(doc["id"] for doc in results) == ["a", "c"]

    async def test_query_orders_with_missing_values_last(self, seeded_store):
        ascending = await seeded_store.query("subscriptions", {"clientId": "t1"}, order_by="endDate")
        descending = await seeded_store.query(
            "subscriptions", {"clientId": "t1"}, order_by="endDate", descending=True
        )

        assert [doc["id"] for doc in ascending] == ["b", "a", "c"]
        assert [doc["id"] for doc in descending] == ["a", "b", "c"]

    async def test_query_limit(self, seeded_store):
        results = await seeded_store.query("subscriptions", order_by="endDate", limit=2)
        assert [doc["id"] for doc in results] == ["b", "d"]

    async def test_upsert_merges_by_default(self, seeded_store):
        await seeded_store.upsert("subscriptions", "a", {"status": "cancelled"})
        assert seeded_store.snapshot("subscriptions")["a"] == {
            "clientId": "t1",
            "status": "cancelled",
            "endDate": 300,
        }

    async def test_upsert_replace_drops_other_fields(self, seeded_store):
        await seeded_store.upsert("subscriptions", "a", {"status": "cancelled", "id": "ignored"}, merge=False)
        assert seeded_store.snapshot("subscriptions")["a"] == {"status": "cancelled"}

    async def test_documents_are_copied(self, seeded_store):
        nested = {"trialInfo": {"durationDays": 14}}
        await seeded_store.upsert("businesses", "t1", nested)
        nested["trialInfo"]["durationDays"] = 99

        document = await seeded_store.get("businesses", "t1")
        document["trialInfo"]["durationDays"] = 1

        assert seeded_store.snapshot("businesses")["t1"]["trialInfo"]["durationDays"] == 14

    async def test_add_generates_ids(self):
        store = MemoryRecordStore()
        first = await store.add("businesses", {"businessName": "A"})
        second = await store.add("businesses", {"businessName": "B"})

        assert first != second
        assert (await store.get("businesses", first))["businessName"] == "A"

    async def test_health_counts_writes(self, seeded_store):
        await seeded_store.upsert("subscriptions", "e", {"clientId": "t3"})
        health = await seeded_store.check_health()

        assert health["status"] == "healthy"
        assert health["collections"]["subscriptions"] == 5
        assert health["writes"] == 1


class TestLocalIdentityProvider:

    SESSION = IdentitySession(session_id="s1", user_id="u1", tenant_id="t1")

    async def test_listeners_see_sign_in_and_sign_out(self):
        identity = LocalIdentityProvider()
        seen = []
        identity.on_session_change(seen.append)

        await identity.sign_in(self.SESSION)
        await identity.terminate_session("s1")

        assert seen == [self.SESSION, None]
        assert identity.terminated == ["s1"]
        assert await identity.current_session() is None

    async def test_unsubscribe_stops_notifications(self):
        identity = LocalIdentityProvider()
        seen = []
        unsubscribe = identity.on_session_change(seen.append)
        unsubscribe()
        unsubscribe()

        await identity.sign_in(self.SESSION)

        assert seen == []

    async def test_async_listener_is_awaited_and_failures_contained(self):
        identity = LocalIdentityProvider()
        seen = []

        async def record(session):
            seen.append(session)

        def broken(_session):
            raise RuntimeError("listener bug")

        identity.on_session_change(broken)
        identity.on_session_change(record)

        await identity.sign_in(self.SESSION)

        assert seen == [self.SESSION]

    async def test_terminating_unknown_session_is_a_no_op(self):
        identity = LocalIdentityProvider()
        await identity.terminate_session("ghost")
        assert identity.terminated == []


class TestMemoryHandoffStore:

    async def test_set_get_delete(self):
        handoff = MemoryHandoffStore()
        await handoff.set("k", "v")

        assert await handoff.get("k") == "v"
        assert await handoff.delete("k") is True
        assert await handoff.delete("k") is False
        assert await handoff.get("k") is None


@dataclass
class SampleEvent(DomainEvent):
    detail: str = ""
    extra: dict = field(default_factory=dict)


class TestLoggingEventPublisher:

    async def test_publish_records_and_dispatches(self):
        publisher = LoggingEventPublisher()
        received = []
        publisher.subscribe("SampleEvent", received.append)

        assert await publisher.publish(SampleEvent(tenant_id="t1", detail="x")) is True

        assert len(received) == 1
        assert publisher.published_events[0]["event_type"] == "SampleEvent"
        assert publisher.published_events[0]["tenant_id"] == "t1"

    async def test_handler_failure_is_contained(self):
        publisher = LoggingEventPublisher()

        async def broken(_payload):
            raise RuntimeError("handler bug")

        publisher.subscribe("SampleEvent", broken)

        assert await publisher.publish(SampleEvent(tenant_id="t1")) is True

    async def test_history_is_bounded(self):
        publisher = LoggingEventPublisher(keep_history=2)

        assert await publisher.publish_batch([SampleEvent(tenant_id=f"t{i}") for i in range(3)]) is True

        assert [event["tenant_id"] for event in publisher.published_events] == ["t1", "t2"]
        assert await publisher.publish_batch([]) is True
