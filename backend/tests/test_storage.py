import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from symptom_triage.core.logging_utils import log_scope, pop_session_metrics, track_operation
from symptom_triage.storage import (
    ConversationRecord,
    InMemorySymptomStore,
    PersistenceError,
    SessionRegistry,
    SymptomRecord,
    to_prior_snapshot,
    utc_now,
)


@dataclass
class DummySession:
    session_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _symptom(user_id: str = "user-1", days_ago: int = 0, name: str = "cough") -> SymptomRecord:
    created = utc_now() - timedelta(days=days_ago)
    return SymptomRecord(
        user_id=user_id,
        symptom_name=name,
        duration="2 days",
        description="",
        created_at=created,
        updated_at=created,
    )


@pytest.mark.asyncio
async def test_query_recent_symptoms_newest_first_and_bounded():
    store = InMemorySymptomStore()
    for days_ago, name in ((5, "older"), (1, "newest"), (3, "middle"), (45, "too old")):
        await store.insert_symptom(_symptom(days_ago=days_ago, name=name))
    await store.insert_symptom(_symptom(user_id="someone-else", name="not mine"))

    recent = await store.query_recent_symptoms("user-1", utc_now() - timedelta(days=30), 2)

    assert [record.symptom_name for record in recent] == ["newest", "middle"]


@pytest.mark.asyncio
async def test_duplicate_symptom_is_rejected():
    store = InMemorySymptomStore()
    record = _symptom()
    await store.insert_symptom(record)

    with pytest.raises(PersistenceError):
        await store.insert_symptom(record)


@pytest.mark.asyncio
async def test_conversation_requires_known_symptom():
    store = InMemorySymptomStore()

    with pytest.raises(PersistenceError, match="Unknown symptom_id"):
        await store.insert_conversation(ConversationRecord(user_id="user-1", symptom_id="missing"))


def test_records_reject_unknown_fields():
    with pytest.raises(ValueError):
        SymptomRecord(user_id="u", symptom_name="cough", duration="", description="", colour="red")


def test_conversation_urgency_defaults_to_low():
    assert ConversationRecord(user_id="user-1").urgency_level == "low"


def test_to_prior_snapshot_copies_fields():
    record = _symptom(name="sore throat")
    snapshot = to_prior_snapshot(record)

    assert snapshot.id == record.id
    assert snapshot.symptom_name == "sore throat"
    assert snapshot.created_at == record.created_at.isoformat()


@pytest.mark.asyncio
async def test_session_registry_add_get_remove():
    registry = SessionRegistry(ttl_hours=1)
    await registry.add(DummySession("s-1"))

    assert (await registry.get("s-1")).session_id == "s-1"
    assert await registry.remove("s-1") is True
    assert await registry.remove("s-1") is False
    assert await registry.get("s-1") is None


@pytest.mark.asyncio
async def test_session_registry_expires_stale_sessions():
    registry = SessionRegistry(ttl_hours=1)
    stale = datetime.now(timezone.utc) - timedelta(hours=2)
    await registry.add(DummySession("stale", created_at=stale))
    await registry.add(DummySession("stale-2", created_at=stale))

    assert await registry.get("stale") is None
    assert await registry.cleanup_expired() == 1
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_adding_a_session_evicts_abandoned_ones():
    registry = SessionRegistry(ttl_hours=1)
    abandoned = datetime.now(timezone.utc) - timedelta(hours=5)
    await registry.add(DummySession("abandoned", created_at=abandoned))

    await registry.add(DummySession("fresh"))

    assert len(registry) == 1
    assert await registry.get("fresh") is not None


@pytest.mark.asyncio
async def test_eviction_drops_session_metrics():
    registry = SessionRegistry(ttl_hours=1)
    abandoned = datetime.now(timezone.utc) - timedelta(hours=5)
    await registry.add(DummySession("abandoned-metrics", created_at=abandoned))
    with log_scope("abandoned-metrics"):
        with track_operation("summary"):
            pass

    assert await registry.cleanup_expired() == 1
    assert pop_session_metrics("abandoned-metrics") == {"operations": {}}


@pytest.mark.asyncio
async def test_sweeper_evicts_until_cancelled():
    registry = SessionRegistry(ttl_hours=1)
    abandoned = datetime.now(timezone.utc) - timedelta(hours=5)
    await registry.add(DummySession("abandoned", created_at=abandoned))

    sweeper = asyncio.create_task(registry.run_sweeper(0.01))
    await asyncio.sleep(0.05)
    sweeper.cancel()
    with pytest.raises(asyncio.CancelledError):
        await sweeper

    assert len(registry) == 0
