"""Triage agent module."""
from .agent import (
    AgentRuntimeConfig,
    IntakeSession,
    SessionStateError,
    build_conversation_record,
    build_symptom_record,
    confirm_and_save,
    edit_field,
    finalize_summary,
    handle_user_message,
    refresh_related_insight,
    regenerate_outputs,
    start_session,
)
from .workflows import (
    generate_next_question,
    generate_recommendation,
    generate_related_symptom_insight,
    generate_summary,
)
from .phases import advance, needs_body_location, validate_transition
from .urgency_rules import classify, classify_state
from .severity import derive_severity_level
from .utils import IncompleteResponseError, ParseError, extract_structured

__all__ = [
    "AgentRuntimeConfig",
    "IntakeSession",
    "SessionStateError",
    "build_conversation_record",
    "build_symptom_record",
    "confirm_and_save",
    "edit_field",
    "finalize_summary",
    "handle_user_message",
    "refresh_related_insight",
    "regenerate_outputs",
    "start_session",
    "generate_next_question",
    "generate_recommendation",
    "generate_related_symptom_insight",
    "generate_summary",
    "advance",
    "needs_body_location",
    "validate_transition",
    "classify",
    "classify_state",
    "derive_severity_level",
    "IncompleteResponseError",
    "ParseError",
    "extract_structured",
]
