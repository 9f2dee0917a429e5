from contextlib import contextmanager
from datetime import timedelta
from io import StringIO
import json
import logging

import pytest

from symptom_triage.agents.triage import (
    AgentRuntimeConfig,
    SessionStateError,
    confirm_and_save,
    edit_field,
    handle_user_message,
    refresh_related_insight,
    start_session,
)
from symptom_triage.agents.triage.agent import RELATED_ERROR_MESSAGE
from symptom_triage.agents.triage.phases import DURATION_QUESTION, GREETING, SUMMARY_PROMPT
from symptom_triage.agents.triage.workflows import NO_LINKAGE_SUMMARY
from symptom_triage.core.state import Phase
from symptom_triage.services.llm import ConfigurationError
from symptom_triage.storage import InMemorySymptomStore, PersistenceError, SymptomRecord, utc_now


class DummyGateway:
    def __init__(self, error: Exception | None = None):
        self.error = error or ConfigurationError("AI provider is not configured")
        self.calls = 0

    async def send(self, system_prompt: str, user_prompt: str) -> str:
        self.calls += 1
        raise self.error


class FailingSaveStore(InMemorySymptomStore):
    async def insert_symptom(self, record):
        raise PersistenceError("database unavailable")


class FlakyConversationStore(InMemorySymptomStore):
    def __init__(self):
        super().__init__()
        self.conversation_attempts = 0

    async def insert_conversation(self, record):
        self.conversation_attempts += 1
        if self.conversation_attempts == 1:
            raise PersistenceError("connection reset")
        return await super().insert_conversation(record)


class FailingQueryStore(InMemorySymptomStore):
    async def query_recent_symptoms(self, user_id, since, limit):
        raise RuntimeError("query timed out")


@contextmanager
def _capture_structured_logs():
    logger = logging.getLogger("symptom_triage.structured")
    original_handlers = list(logger.handlers)
    original_level = logger.level
    original_propagate = logger.propagate

    buffer = StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers = [handler]
    logger.setLevel(logging.INFO)
    logger.propagate = False
    try:
        yield buffer
    finally:
        handler.flush()
        logger.handlers = original_handlers
        logger.setLevel(original_level)
        logger.propagate = original_propagate


def _runtime(store=None, **overrides) -> AgentRuntimeConfig:
    return AgentRuntimeConfig(
        gateway=DummyGateway(),
        store=store or InMemorySymptomStore(),
        **overrides,
    )


async def _complete_intake(runtime: AgentRuntimeConfig, user_id: str | None = "user-1"):
    session = start_session(user_id=user_id)
    await handle_user_message(runtime, session, "mild cough")
    await handle_user_message(runtime, session, "3 days")
    await handle_user_message(runtime, session, "worse at night")
    return session


def test_start_session_greets_and_asks_for_symptom():
    session = start_session(user_id="user-1")

    assert session.messages[0]["role"] == "assistant"
    assert session.messages[0]["content"] == GREETING
    assert session.state.conversation_phase is Phase.SYMPTOM
    assert session.summary is None


@pytest.mark.asyncio
async def test_turns_follow_phase_engine_when_ai_unavailable():
    runtime = _runtime()
    session = start_session(user_id="user-1")

    first = await handle_user_message(runtime, session, "mild cough")
    await handle_user_message(runtime, session, "3 days")
    last = await handle_user_message(runtime, session, "worse at night")

    assert first == DURATION_QUESTION
    assert last == SUMMARY_PROMPT
    assert session.state.conversation_phase is Phase.SUMMARY
    assert session.state.contextual_info == "worse at night"
    assert len(session.history) == 3
    assert [message["role"] for message in session.messages] == [
        "assistant", "user", "assistant", "user", "assistant", "user", "assistant",
    ]


@pytest.mark.asyncio
async def test_message_in_summary_phase_finalizes_outputs():
    runtime = _runtime()
    session = await _complete_intake(runtime)

    reply = await handle_user_message(runtime, session, "  nothing else  ")

    assert reply is None
    assert session.additional_info == "nothing else"
    assert session.summary is not None
    assert "**Further Information:** nothing else" in session.summary.text
    assert session.recommendation is not None
    assert session.recommendation.urgency_level == "low"
    assert session.related_insight is None
    assert session.related_error is None


@pytest.mark.asyncio
async def test_edit_field_regenerates_recommendation():
    runtime = _runtime()
    session = await _complete_intake(runtime)
    await handle_user_message(runtime, session, "")

    await edit_field(runtime, session, "symptom", "chest pain")

    assert session.state.symptom == "chest pain"
    assert session.recommendation.urgency_level == "urgent"
    assert "**Chief Complaint:** chest pain" in session.summary.text


@pytest.mark.asyncio
async def test_blank_edit_clears_field():
    runtime = _runtime()
    session = await _complete_intake(runtime)

    await edit_field(runtime, session, "duration", "   ")

    assert session.state.duration is None
    assert "**Duration:** Not provided" in session.summary.text


@pytest.mark.asyncio
async def test_edit_rejected_before_summary():
    runtime = _runtime()
    session = start_session(user_id="user-1")
    await handle_user_message(runtime, session, "mild cough")

    with pytest.raises(SessionStateError):
        await edit_field(runtime, session, "duration", "2 days")


@pytest.mark.asyncio
async def test_edit_rejects_unknown_field_and_uncollected_location():
    runtime = _runtime()
    session = await _complete_intake(runtime)

    with pytest.raises(SessionStateError):
        await edit_field(runtime, session, "conversation_phase", "symptom")
    with pytest.raises(SessionStateError):
        await edit_field(runtime, session, "body_location", "chest")


@pytest.mark.asyncio
async def test_confirm_and_save_persists_linked_records():
    store = InMemorySymptomStore()
    runtime = _runtime(store)
    session = await _complete_intake(runtime)
    await handle_user_message(runtime, session, "no")

    symptom, conversation = await confirm_and_save(runtime, session)

    assert symptom.symptom_name == "mild cough"
    assert symptom.duration == "3 days"
    assert symptom.description == "worse at night"
    assert symptom.severity == "medium"
    assert conversation.symptom_id == symptom.id
    assert conversation.urgency_level == "low"
    assert conversation.summary == session.summary.text
    assert conversation.completed_at is not None
    assert len(conversation.messages) == len(session.messages)
    assert session.completed_at == conversation.completed_at
    assert await store.get_conversation(conversation.id) == conversation
    assert await store.query_recent_symptoms("user-1", utc_now() - timedelta(days=1), 8) == [symptom]


@pytest.mark.asyncio
async def test_confirm_logs_session_metrics():
    runtime = _runtime()
    session = await _complete_intake(runtime)
    await handle_user_message(runtime, session, "no")

    with _capture_structured_logs() as buffer:
        await confirm_and_save(runtime, session)

    records = [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]
    saved = next(record for record in records if record["event"] == "session_saved")
    assert saved["session_id"] == session.session_id
    operations = saved["details"]["metrics"]["operations"]
    assert operations["next_question"]["outcomes"] == {"fallback": 3}
    assert operations["summary"]["outcomes"] == {"fallback": 1}
    assert operations["recommendation"]["runs"] == 1


@pytest.mark.asyncio
async def test_confirm_requires_summary_and_user():
    runtime = _runtime()
    anonymous = await _complete_intake(runtime, user_id=None)
    await handle_user_message(runtime, anonymous, "no")
    with pytest.raises(SessionStateError):
        await confirm_and_save(runtime, anonymous)

    unsummarized = await _complete_intake(runtime)
    with pytest.raises(SessionStateError):
        await confirm_and_save(runtime, unsummarized)


@pytest.mark.asyncio
async def test_save_failure_propagates_and_leaves_session_open():
    runtime = _runtime(FailingSaveStore())
    session = await _complete_intake(runtime)
    await handle_user_message(runtime, session, "no")

    with pytest.raises(PersistenceError):
        await confirm_and_save(runtime, session)
    assert session.completed_at is None


@pytest.mark.asyncio
async def test_retry_after_partial_save_reuses_stored_symptom():
    store = FlakyConversationStore()
    runtime = _runtime(store)
    session = await _complete_intake(runtime)
    await handle_user_message(runtime, session, "no")

    with pytest.raises(PersistenceError):
        await confirm_and_save(runtime, session)
    assert session.completed_at is None

    symptom, conversation = await confirm_and_save(runtime, session)

    recent = await store.query_recent_symptoms("user-1", utc_now() - timedelta(days=1), 8)
    assert recent == [symptom]
    assert conversation.symptom_id == symptom.id
    assert session.completed_at is not None


@pytest.mark.asyncio
async def test_edit_rejected_once_symptom_is_stored():
    runtime = _runtime(FlakyConversationStore())
    session = await _complete_intake(runtime)
    await handle_user_message(runtime, session, "no")
    with pytest.raises(PersistenceError):
        await confirm_and_save(runtime, session)

    with pytest.raises(SessionStateError):
        await edit_field(runtime, session, "duration", "4 days")


@pytest.mark.asyncio
async def test_related_insight_uses_recent_history():
    store = InMemorySymptomStore()
    await store.insert_symptom(
        SymptomRecord(user_id="user-1", symptom_name="sore throat", duration="2 days", description="")
    )
    runtime = _runtime(store)
    session = await _complete_intake(runtime)

    await handle_user_message(runtime, session, "no")

    assert session.related_insight is not None
    assert session.related_insight.summary == NO_LINKAGE_SUMMARY
    assert session.related_error is None
    assert [prior.symptom_name for prior in session.related_symptoms] == ["sore throat"]


@pytest.mark.asyncio
async def test_related_insight_ignores_symptoms_outside_lookback():
    store = InMemorySymptomStore()
    old = utc_now() - timedelta(days=40)
    await store.insert_symptom(
        SymptomRecord(
            user_id="user-1",
            symptom_name="sore throat",
            duration="2 days",
            description="",
            created_at=old,
            updated_at=old,
        )
    )
    runtime = _runtime(store, related_lookback_days=30)
    session = await _complete_intake(runtime)

    await refresh_related_insight(runtime, session)

    assert session.related_insight is None


@pytest.mark.asyncio
async def test_related_lookup_failure_is_advisory():
    runtime = _runtime(FailingQueryStore())
    session = await _complete_intake(runtime)

    await handle_user_message(runtime, session, "no")

    assert session.summary is not None
    assert session.recommendation is not None
    assert session.related_insight is None
    assert session.related_error == RELATED_ERROR_MESSAGE
    assert session.related_symptoms == []
