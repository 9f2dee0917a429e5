"""Intake session orchestration: turns, summary finalization, edits and saving."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional
from uuid import uuid4

from ...core.logging_utils import log_event, log_scope, pop_session_metrics
from ...core.results import (
    PriorSymptomSnapshot,
    RecommendationResult,
    RelatedSymptomInsight,
    SummaryResult,
)
from ...core.state import EDITABLE_FIELDS, ConversationState, Phase, initial_state
from ...core.types import ChatHistory
from ...storage import (
    ConversationRecord,
    SymptomRecord,
    SymptomStore,
    to_prior_snapshot,
    utc_now,
)
from .phases import GREETING
from .severity import derive_severity_level
from .workflows import (
    DEFAULT_MAX_PRIOR_SYMPTOMS,
    TextGateway,
    generate_next_question,
    generate_recommendation,
    generate_related_symptom_insight,
    generate_summary,
)

RELATED_ERROR_MESSAGE = "Unable to load recent symptoms right now."


class SessionStateError(ValueError):
    """Raised when an operation is not valid for the session's current phase."""


@dataclass(frozen=True)
class AgentRuntimeConfig:
    gateway: TextGateway
    store: SymptomStore
    severity_enabled: bool = False
    related_lookback_days: int = 30
    related_max_symptoms: int = DEFAULT_MAX_PRIOR_SYMPTOMS

    @classmethod
    def from_services(cls, services: Mapping[str, Any]) -> "AgentRuntimeConfig":
        settings = services["settings"]
        return cls(
            gateway=services["gateway"],
            store=services["store"],
            severity_enabled=settings.severity_phase_enabled,
            related_lookback_days=settings.related_lookback_days,
            related_max_symptoms=settings.related_max_symptoms,
        )


@dataclass
class IntakeSession:
    """One patient's intake conversation. Owned by a single caller at a time."""

    session_id: str
    user_id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    state: ConversationState = field(default_factory=initial_state)
    history: list[ConversationState] = field(default_factory=list)
    messages: ChatHistory = field(default_factory=list)
    additional_info: Optional[str] = None
    summary: Optional[SummaryResult] = None
    recommendation: Optional[RecommendationResult] = None
    related_symptoms: list[PriorSymptomSnapshot] = field(default_factory=list)
    related_insight: Optional[RelatedSymptomInsight] = None
    related_error: Optional[str] = None
    saved_symptom: Optional[SymptomRecord] = None
    completed_at: Optional[datetime] = None
    turn_id: int = 0

    def add_message(self, role: str, content: str) -> None:
        self.messages.append(
            {"role": role, "content": content, "timestamp": utc_now().isoformat()}
        )

    def apply_state(self, new_state: ConversationState) -> None:
        self.history.append(self.state)
        self.state = new_state


def start_session(
    user_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> IntakeSession:
    session = IntakeSession(session_id=session_id or str(uuid4()), user_id=user_id)
    session.add_message("assistant", GREETING)
    log_event(
        component="agent",
        event="session_started",
        session_id=session.session_id,
        details={"has_user": user_id is not None},
    )
    return session


async def handle_user_message(
    config: AgentRuntimeConfig,
    session: IntakeSession,
    content: str,
) -> Optional[str]:
    """
    Process one user turn.

    Before the summary phase the message answers the pending question and
    the assistant's next question is returned. In the summary phase the
    message is treated as additional information: the summary,
    recommendation and related-symptom insight are (re)generated and None
    is returned.
    """
    session.turn_id += 1
    text = content.strip()
    session.add_message("user", text)

    with log_scope(session.session_id, session.turn_id):
        if session.state.conversation_phase is Phase.SUMMARY:
            await finalize_summary(config, session, text)
            return None

        result = await generate_next_question(
            config.gateway,
            session.state,
            text,
            severity_enabled=config.severity_enabled,
        )
        session.apply_state(result.new_state)
        session.add_message("assistant", result.message)
        log_event(
            component="agent",
            event="turn_completed",
            details={"phase": result.phase.value},
        )
    return result.message


async def regenerate_outputs(config: AgentRuntimeConfig, session: IntakeSession) -> None:
    """Recompute summary, recommendation and related insight from the current state."""
    with log_scope(session.session_id, session.turn_id):
        summary = await generate_summary(config.gateway, session.state, session.additional_info)
        recommendation = await generate_recommendation(
            config.gateway,
            session.state,
            summary=summary.text,
            additional_info=session.additional_info,
        )
        session.summary = summary
        session.recommendation = recommendation
        log_event(
            component="agent",
            event="outputs_regenerated",
            details={"urgency_level": recommendation.urgency_level, "tips": len(summary.tips)},
        )
        await refresh_related_insight(config, session)


async def finalize_summary(
    config: AgentRuntimeConfig,
    session: IntakeSession,
    additional_info: str,
) -> None:
    trimmed = additional_info.strip()
    session.additional_info = trimmed if trimmed else None
    await regenerate_outputs(config, session)


async def edit_field(
    config: AgentRuntimeConfig,
    session: IntakeSession,
    field_name: str,
    value: Optional[str],
) -> None:
    """Edit one captured field after the summary and regenerate the outputs.

    A blank value clears the field.
    """
    if field_name not in EDITABLE_FIELDS:
        raise SessionStateError(f"Field '{field_name}' cannot be edited")
    if session.state.conversation_phase is not Phase.SUMMARY:
        raise SessionStateError("Fields can only be edited once the summary is reached")
    if field_name == "body_location" and not session.state.requires_location:
        raise SessionStateError("Body location is not collected for this symptom")
    if session.saved_symptom is not None:
        raise SessionStateError("The symptom is already recorded; retry saving instead")

    trimmed = (value or "").strip()
    updated = session.state.evolve(
        **{field_name: trimmed or None},
        skipped_fields=session.state.skipped_fields - {field_name},
    )
    session.apply_state(updated)
    log_event(
        component="agent",
        event="field_edited",
        session_id=session.session_id,
        details={"field": field_name, "cleared": not trimmed},
    )
    await regenerate_outputs(config, session)


async def refresh_related_insight(
    config: AgentRuntimeConfig,
    session: IntakeSession,
    now: Optional[datetime] = None,
) -> None:
    """Look up recent symptoms and ask for a linkage judgement.

    Failures are reported through ``session.related_error`` and never block
    the conversation.
    """
    session.related_error = None
    if session.user_id is None:
        session.related_symptoms = []
        session.related_insight = None
        return

    since = (now or utc_now()) - timedelta(days=config.related_lookback_days)
    try:
        records = await config.store.query_recent_symptoms(
            session.user_id,
            since,
            config.related_max_symptoms,
        )
        session.related_symptoms = [to_prior_snapshot(record) for record in records]
        session.related_insight = await generate_related_symptom_insight(
            config.gateway,
            session.state,
            session.related_symptoms,
            max_prior=config.related_max_symptoms,
        )
    except Exception as err:
        log_event(
            component="agent",
            event="related_refresh_failed",
            level="WARNING",
            session_id=session.session_id,
            details={"error_type": type(err).__name__, "error": str(err)},
        )
        session.related_symptoms = []
        session.related_insight = None
        session.related_error = RELATED_ERROR_MESSAGE


def build_symptom_record(
    state: ConversationState,
    user_id: str,
    now: Optional[datetime] = None,
) -> SymptomRecord:
    timestamp = now or utc_now()
    return SymptomRecord(
        user_id=user_id,
        symptom_name=state.symptom or "",
        body_location=state.body_location or None,
        duration=state.duration or "",
        description=state.contextual_info or "",
        severity=derive_severity_level(state.symptom, state.severity),
        created_at=timestamp,
        updated_at=timestamp,
    )


def build_conversation_record(
    session: IntakeSession,
    user_id: str,
    symptom_id: Optional[str],
    now: Optional[datetime] = None,
) -> ConversationRecord:
    timestamp = now or utc_now()
    recommendation = session.recommendation
    return ConversationRecord(
        user_id=user_id,
        symptom_id=symptom_id,
        messages=[dict(message) for message in session.messages],
        summary=session.summary.text if session.summary else None,
        recommendation=recommendation.recommendation if recommendation else None,
        urgency_level=recommendation.urgency_level if recommendation else "low",
        completed_at=timestamp,
        created_at=timestamp,
        updated_at=timestamp,
    )


async def confirm_and_save(
    config: AgentRuntimeConfig,
    session: IntakeSession,
    now: Optional[datetime] = None,
) -> tuple[SymptomRecord, ConversationRecord]:
    """
    Persist the confirmed symptom and its conversation.

    Store failures propagate so the caller can tell the user the save failed.
    A symptom stored by an earlier, partly failed attempt is reused rather
    than inserted again.
    """
    if session.user_id is None:
        raise SessionStateError("A user id is required to save a symptom")
    if session.summary is None:
        raise SessionStateError("The summary must be generated before saving")

    timestamp = now or utc_now()
    with log_scope(session.session_id, session.turn_id):
        symptom = session.saved_symptom
        if symptom is None:
            symptom = await config.store.insert_symptom(
                build_symptom_record(session.state, session.user_id, timestamp)
            )
            session.saved_symptom = symptom
        else:
            log_event(
                component="agent",
                event="symptom_reused",
                details={"symptom_id": symptom.id},
            )
        conversation = await config.store.insert_conversation(
            build_conversation_record(session, session.user_id, symptom.id, timestamp)
        )
        session.completed_at = timestamp
        log_event(
            component="agent",
            event="session_saved",
            details={
                "symptom_id": symptom.id,
                "conversation_id": conversation.id,
                "metrics": pop_session_metrics(session.session_id),
            },
        )
    return symptom, conversation
