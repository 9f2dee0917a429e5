"""Deterministic phase engine for the guided symptom intake."""
from __future__ import annotations

from ...core.results import NextQuestionResult
from ...core.state import PHASE_FIELDS, ConversationState, Phase
from .utils import IncompleteResponseError

GREETING = "Hello! I'm here to help you log your symptoms. What symptom are you experiencing?"

SYMPTOM_QUESTION = "What symptom are you experiencing?"
LOCATION_QUESTION = "Where exactly are you experiencing this?"
DURATION_QUESTION = "How long have you been experiencing this symptom?"
SEVERITY_QUESTION = (
    "How severe is it right now? You can give a number from 0 to 10, "
    "or describe it, for example mild, moderate or severe."
)
SUMMARY_PROMPT = (
    "Thank you for sharing that information. "
    "Is there anything else you'd like to add before I create a summary?"
)
PROCESSING_MESSAGE = "I'm processing your information..."

LOCATION_KEYWORDS: tuple[str, ...] = (
    "pain", "ache", "soreness", "swelling", "rash", "bruise", "cut", "burn",
    "numbness", "tingling", "weakness", "stiffness", "itching", "bump", "lump",
)

_SYMPTOM_HINTS: tuple[tuple[str, str], ...] = (
    ("cough", "e.g. wet or dry, colour of phlegm, anything that triggers it, time of day it's worse"),
    (
        "headache",
        "e.g. throbbing or constant, location (front, back, sides), severity on a scale "
        "of 1-10, what makes it better or worse",
    ),
    ("fever", "e.g. temperature if measured, time it started, accompanying symptoms like chills or sweating"),
    ("nausea", "e.g. accompanied by vomiting, relation to meals, severity, triggers"),
    ("fatigue", "e.g. how long you've felt tired, impact on daily activities, sleep quality"),
    ("dizziness", "e.g. spinning sensation or lightheadedness, when it occurs, triggers"),
    ("sore throat", "e.g. difficulty swallowing, pain level, accompanying symptoms"),
)
_DEFAULT_HINT = (
    "e.g. when it started, severity, what makes it better or worse, "
    "any patterns you've noticed"
)


def needs_body_location(symptom: str | None) -> bool:
    lower_symptom = (symptom or "").lower()
    return any(keyword in lower_symptom for keyword in LOCATION_KEYWORDS)


def symptom_hint(symptom: str | None) -> str:
    lower_symptom = (symptom or "").lower()
    for keyword, hint in _SYMPTOM_HINTS:
        if keyword in lower_symptom:
            return hint
    return _DEFAULT_HINT


def context_question(symptom: str | None) -> str:
    return (
        f"Please tell me more about this symptom. {symptom_hint(symptom)}\n\n"
        "Also, is there any other information that might be relevant? For example, "
        "recent lifestyle changes, sleep patterns, stress levels, or activities that "
        "might be connected?"
    )


def phase_sequence(requires_location: bool, severity_enabled: bool = False) -> tuple[Phase, ...]:
    """Phases visited after the greeting, for one variant."""
    phases = [Phase.SYMPTOM]
    if requires_location:
        phases.append(Phase.LOCATION)
    phases.extend([Phase.DURATION, Phase.CONTEXT])
    if severity_enabled:
        phases.append(Phase.SEVERITY)
    phases.append(Phase.SUMMARY)
    return tuple(phases)


def required_fields(state: ConversationState, severity_enabled: bool = False) -> tuple[str, ...]:
    return tuple(
        PHASE_FIELDS[phase]
        for phase in phase_sequence(state.requires_location, severity_enabled)
        if phase in PHASE_FIELDS
    )


def missing_fields(state: ConversationState, severity_enabled: bool = False) -> list[str]:
    """Required fields that are neither filled nor explicitly skipped."""
    return [
        name for name in required_fields(state, severity_enabled)
        if not state.is_answered(name)
    ]


def question_for(phase: Phase, state: ConversationState) -> str:
    """The fixed prompt emitted on entering ``phase``."""
    if phase is Phase.SYMPTOM:
        return SYMPTOM_QUESTION
    if phase is Phase.LOCATION:
        return LOCATION_QUESTION
    if phase is Phase.DURATION:
        return DURATION_QUESTION
    if phase is Phase.CONTEXT:
        return context_question(state.symptom)
    if phase is Phase.SEVERITY:
        return SEVERITY_QUESTION
    if phase is Phase.SUMMARY:
        return SUMMARY_PROMPT
    return PROCESSING_MESSAGE


def _store_answer(state: ConversationState, field_name: str, user_message: str) -> ConversationState:
    answer = (user_message or "").strip()
    if answer:
        return state.evolve(
            **{field_name: answer},
            skipped_fields=state.skipped_fields - {field_name},
        )
    return state.evolve(
        **{field_name: None},
        skipped_fields=state.skipped_fields | {field_name},
    )


def _next_phase(
    current: Phase,
    requires_location: bool,
    severity_enabled: bool,
) -> Phase:
    for phase in phase_sequence(requires_location, severity_enabled):
        if phase.rank > current.rank:
            return phase
    return Phase.SUMMARY


def advance(
    state: ConversationState,
    user_message: str,
    *,
    severity_enabled: bool = False,
) -> NextQuestionResult:
    """
    Apply one user message to the state machine.

    The message answers the question asked by the current phase, so it is
    stored in that phase's field before moving on. ``requires_location`` is
    decided here, once, when the symptom is stored.
    """
    phase = state.conversation_phase

    if phase is Phase.SUMMARY:
        return NextQuestionResult(
            message=PROCESSING_MESSAGE,
            new_state=state.evolve(),
            phase=Phase.SUMMARY,
        )

    new_state = state
    field_name = PHASE_FIELDS.get(phase)
    if phase is Phase.LOCATION and not state.requires_location:
        field_name = None
    if field_name is not None:
        new_state = _store_answer(new_state, field_name, user_message)
    if phase is Phase.SYMPTOM:
        new_state = new_state.evolve(requires_location=needs_body_location(new_state.symptom))

    target = _next_phase(phase, new_state.requires_location, severity_enabled)
    new_state = new_state.evolve(conversation_phase=target)
    return NextQuestionResult(
        message=question_for(target, new_state),
        new_state=new_state,
        phase=target,
    )


def validate_transition(
    previous: ConversationState,
    candidate: ConversationState,
    *,
    severity_enabled: bool = False,
) -> None:
    """
    Check a state proposed by the model against the state machine.

    Raises IncompleteResponseError when the proposal moves backwards, stays
    put, enters a phase this variant never visits, or skips a phase whose
    field has not been answered.
    """
    target = candidate.conversation_phase
    if target is Phase.INITIAL or target.rank <= previous.conversation_phase.rank:
        raise IncompleteResponseError(
            f"Phase must move forward from {previous.conversation_phase.value}, got {target.value}"
        )
    sequence = phase_sequence(candidate.requires_location, severity_enabled)
    if target not in sequence:
        raise IncompleteResponseError(f"Phase {target.value} is not part of this intake flow")
    if not candidate.requires_location and candidate.body_location:
        raise IncompleteResponseError("Body location recorded for a symptom that does not need one")

    for phase in sequence[: sequence.index(target)]:
        field_name = PHASE_FIELDS.get(phase)
        if field_name is not None and not candidate.is_answered(field_name):
            raise IncompleteResponseError(
                f"Cannot enter {target.value} before {field_name} is answered"
            )
