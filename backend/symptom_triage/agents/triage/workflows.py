"""Triage content generators.

Every generator follows the same pattern: build a prompt from the state,
call the gateway, parse and validate the reply, and on any failure log the
error and return the deterministic result instead. None of them raise.
"""

import json
from typing import Any, Optional, Protocol, Sequence

from ...core.error_mapping import describe_error
from ...core.logging_utils import log_event, track_operation
from ...core.results import (
    NextQuestionResult,
    PriorSymptomSnapshot,
    RecommendationResult,
    RelatedSymptomInsight,
    SummaryResult,
)
from ...core.state import PHASE_FIELDS, ConversationState, Phase
from ...core.types import URGENCY_LEVELS
from .phases import advance, needs_body_location, validate_transition
from .prompts import (
    NEXT_QUESTION_SYSTEM_PROMPT,
    RECOMMENDATION_SYSTEM_PROMPT,
    RELATED_SYMPTOM_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
)
from .urgency_rules import classify_state
from .utils import IncompleteResponseError, extract_structured, require_fields

MAX_TIPS = 3
DEFAULT_MAX_PRIOR_SYMPTOMS = 8

FALLBACK_TIPS: tuple[str, ...] = (
    "Keep a note of when your symptoms change, improve or get worse.",
    "Stay hydrated and get plenty of rest while you recover.",
)

NO_LINKAGE_SUMMARY = (
    "We couldn't confirm a link between this symptom and your recently logged symptoms."
)
NO_LINKAGE_RECOMMENDATION = (
    "If you notice a pattern in your symptoms, mention your recent symptom history to your GP."
)


class TextGateway(Protocol):
    async def send(self, system_prompt: str, user_prompt: str) -> str: ...


def _log_fallback(operation: str, error: BaseException) -> None:
    log_event(
        component="workflows",
        event=f"{operation}_fallback",
        level="WARNING",
        details=describe_error(error),
    )


def _state_json(state: ConversationState) -> str:
    return json.dumps(state.to_wire(), indent=2, ensure_ascii=True)


def _require_text(payload: dict[str, Any], name: str) -> str:
    value = payload.get(name)
    if not isinstance(value, str) or not value.strip():
        raise IncompleteResponseError(f"Model response field '{name}' must be a non-empty string")
    return value.strip()


# ============= Next question =============

def _build_next_question_prompt(
    state: ConversationState,
    user_message: str,
    severity_enabled: bool,
) -> str:
    severity_note = (
        "The severity phase is enabled."
        if severity_enabled
        else "The severity phase is disabled; go from context straight to summary."
    )
    return (
        f"Conversation state:\n{_state_json(state)}\n\n"
        f"Latest user message:\n{user_message}\n\n"
        f"{severity_note}\n"
        "Determine what information is still missing, ask a compassionate follow-up "
        "question, and advance the phase logically. Only ask for one piece of "
        "information at a time. If all information is collected, move to the "
        "summary phase and thank the user."
    )


def _next_question_from_model(
    state: ConversationState,
    parsed: dict[str, Any],
    severity_enabled: bool,
) -> NextQuestionResult:
    require_fields(parsed, "message", "newState")
    proposed = parsed["newState"]
    if not isinstance(proposed, dict):
        raise IncompleteResponseError("Model response 'newState' must be an object")

    raw_phase = proposed.get("conversationPhase") or parsed.get("phase")
    try:
        phase = Phase(str(raw_phase).strip().lower())
    except ValueError as err:
        raise IncompleteResponseError(f"Unknown conversation phase: {raw_phase!r}") from err

    # Only the field the pending question asks for may change this turn.
    owned_field = PHASE_FIELDS.get(state.conversation_phase)
    candidate = state.merge_wire(proposed, only=(owned_field,) if owned_field else ())
    # The keyword heuristic decides location, so both paths branch the same way.
    if state.conversation_phase is Phase.SYMPTOM:
        requires_location = needs_body_location(candidate.symptom)
    else:
        requires_location = state.requires_location
    candidate = candidate.evolve(
        conversation_phase=phase,
        requires_location=requires_location,
        skipped_fields=state.skipped_fields,
    )
    if not requires_location:
        candidate = candidate.evolve(body_location=None)

    validate_transition(state, candidate, severity_enabled=severity_enabled)
    return NextQuestionResult(
        message=_require_text(parsed, "message"),
        new_state=candidate,
        phase=phase,
    )


async def generate_next_question(
    gateway: TextGateway,
    state: ConversationState,
    user_message: str,
    *,
    severity_enabled: bool = False,
) -> NextQuestionResult:
    """
    Ask the model for the next intake question and the updated state.

    The greeting and summary phases have nothing to ask, so they go straight
    to the phase engine. Any failure falls back to the engine's fixed
    question for the next phase; the transition always happens.

    :param gateway: object with an async ``send(system_prompt, user_prompt)``
    :param state: current conversation state (not modified)
    :param user_message: the patient's answer to the last question
    :return: message to show, the new state and its phase
    """
    if state.conversation_phase in (Phase.INITIAL, Phase.SUMMARY):
        return advance(state, user_message, severity_enabled=severity_enabled)

    user_prompt = _build_next_question_prompt(state, user_message, severity_enabled)
    with track_operation("next_question") as run:
        try:
            response_text = await gateway.send(NEXT_QUESTION_SYSTEM_PROMPT.strip(), user_prompt)
            result = _next_question_from_model(
                state,
                extract_structured(response_text),
                severity_enabled,
            )
        except Exception as err:
            _log_fallback("next_question", err)
            run.outcome = "fallback"
            return advance(state, user_message, severity_enabled=severity_enabled)

    log_event(
        component="workflows",
        event="next_question_generated",
        details={
            "from_phase": state.conversation_phase.value,
            "to_phase": result.phase.value,
        },
    )
    return result


# ============= Summary =============

def build_fallback_summary_text(
    state: ConversationState,
    additional_info: Optional[str] = None,
) -> str:
    def _value(text: Optional[str]) -> str:
        return text if text else "Not provided"

    sections = [
        "**Symptom Summary**",
        f"**Chief Complaint:** {_value(state.symptom)}",
    ]
    if state.body_location:
        sections.append(f"**Location:** {state.body_location}")
    sections.append(f"**Duration:** {_value(state.duration)}")
    if state.severity:
        sections.append(f"**Severity:** {state.severity}")
    sections.append(f"**Additional Details:** {_value(state.contextual_info)}")
    if additional_info:
        sections.append(f"**Further Information:** {additional_info}")
    return "\n\n".join(sections)


def fallback_summary(
    state: ConversationState,
    additional_info: Optional[str] = None,
) -> SummaryResult:
    return SummaryResult(
        text=build_fallback_summary_text(state, additional_info),
        tips=FALLBACK_TIPS,
    )


def _normalize_tips(raw_tips: Any) -> tuple[str, ...]:
    if not isinstance(raw_tips, list):
        return ()
    tips = [str(tip).strip() for tip in raw_tips if isinstance(tip, str) and tip.strip()]
    return tuple(tips[:MAX_TIPS])


async def generate_summary(
    gateway: TextGateway,
    state: ConversationState,
    additional_info: Optional[str] = None,
) -> SummaryResult:
    """Clinician-readable markdown summary plus up to three self-care tips."""
    user_prompt = (
        f"Patient provided the following details:\n{_state_json(state)}\n\n"
        f"Additional information to include: {additional_info or 'None'}\n\n"
        "Write a concise markdown summary suitable for sharing with a healthcare professional."
    )
    with track_operation("summary") as run:
        try:
            response_text = await gateway.send(SUMMARY_SYSTEM_PROMPT.strip(), user_prompt)
            parsed = extract_structured(response_text)
            return SummaryResult(
                text=_require_text(parsed, "summary"),
                tips=_normalize_tips(parsed.get("tips")),
            )
        except Exception as err:
            _log_fallback("summary", err)
            run.outcome = "fallback"
            return fallback_summary(state, additional_info)


# ============= Recommendation =============

def _recommendation_from_model(parsed: dict[str, Any]) -> RecommendationResult:
    require_fields(parsed, "recommendation", "urgencyLevel")
    urgency_level = str(parsed["urgencyLevel"]).strip().lower()
    if urgency_level not in URGENCY_LEVELS:
        raise IncompleteResponseError(f"Unknown urgency level: {parsed['urgencyLevel']!r}")
    advice = parsed.get("advice")
    return RecommendationResult(
        recommendation=_require_text(parsed, "recommendation"),
        urgency_level=urgency_level,  # type: ignore[arg-type]
        advice=advice.strip() if isinstance(advice, str) else "",
    )


async def generate_recommendation(
    gateway: TextGateway,
    state: ConversationState,
    *,
    summary: Optional[str] = None,
    additional_info: Optional[str] = None,
) -> RecommendationResult:
    """
    Urgency recommendation following UK triage bands.

    The deterministic classifier is both the fallback and a floor: when it
    finds an emergency keyword, a lower model verdict is replaced.
    """
    baseline = classify_state(state, additional_info)
    user_prompt = (
        f"Patient state:\n{_state_json(state)}\n\n"
        f"Structured summary (if provided):\n{summary or 'Not available'}\n\n"
        f"Additional patient notes: {additional_info or 'None'}\n\n"
        "Classify urgency carefully using UK guidance (999 for emergencies, GP for "
        "non-urgent, 111 for pressing). Make sure the advice feels empathetic and actionable."
    )
    with track_operation("recommendation") as run:
        try:
            response_text = await gateway.send(RECOMMENDATION_SYSTEM_PROMPT.strip(), user_prompt)
            result = _recommendation_from_model(extract_structured(response_text))
        except Exception as err:
            _log_fallback("recommendation", err)
            run.outcome = "fallback"
            return baseline

        if baseline.urgency_level == "urgent" and result.urgency_level != "urgent":
            log_event(
                component="workflows",
                event="recommendation_escalated",
                level="WARNING",
                details={
                    "model_level": result.urgency_level,
                    "baseline_level": baseline.urgency_level,
                },
            )
            run.outcome = "escalated"
            return baseline
        return result


# ============= Related symptoms =============

def no_linkage_insight() -> RelatedSymptomInsight:
    return RelatedSymptomInsight(
        summary=NO_LINKAGE_SUMMARY,
        recommendation=NO_LINKAGE_RECOMMENDATION,
        linked_symptom_ids=(),
    )


async def generate_related_symptom_insight(
    gateway: TextGateway,
    state: ConversationState,
    prior_symptoms: Sequence[PriorSymptomSnapshot],
    *,
    max_prior: int = DEFAULT_MAX_PRIOR_SYMPTOMS,
) -> Optional[RelatedSymptomInsight]:
    """
    Judge whether the current symptom may share a cause with recent ones.

    Returns None when there is no history to compare against. Does not
    touch the conversation state, so it can be recomputed freely.
    """
    priors = list(prior_symptoms)[:max_prior]
    if not priors:
        return None

    user_prompt = (
        f"Current symptom:\n{_state_json(state)}\n\n"
        "Prior symptoms (most recent first):\n"
        f"{json.dumps([prior.to_dict() for prior in priors], indent=2, ensure_ascii=True)}\n\n"
        "Judge whether the current symptom plausibly shares an underlying cause with "
        "any prior symptom."
    )
    known_ids = {prior.id for prior in priors}
    with track_operation("related_insight") as run:
        try:
            response_text = await gateway.send(RELATED_SYMPTOM_SYSTEM_PROMPT.strip(), user_prompt)
            parsed = extract_structured(response_text)
            raw_ids = parsed.get("linkedSymptomIds")
            if not isinstance(raw_ids, list):
                raw_ids = []
            linked_ids = tuple(
                dict.fromkeys(str(item) for item in raw_ids if str(item) in known_ids)
            )
            return RelatedSymptomInsight(
                summary=_require_text(parsed, "summary"),
                recommendation=_require_text(parsed, "recommendation"),
                linked_symptom_ids=linked_ids,
            )
        except Exception as err:
            _log_fallback("related_insight", err)
            run.outcome = "fallback"
            return no_linkage_insight()
