import pytest

from symptom_triage.agents.triage.phases import (
    DURATION_QUESTION,
    LOCATION_QUESTION,
    PROCESSING_MESSAGE,
    SEVERITY_QUESTION,
    SUMMARY_PROMPT,
    advance,
    context_question,
    missing_fields,
    needs_body_location,
    phase_sequence,
    validate_transition,
)
from symptom_triage.agents.triage.utils import IncompleteResponseError
from symptom_triage.core.state import ConversationState, Phase, initial_state


@pytest.mark.parametrize(
    ("symptom", "expected"),
    [
        ("knee pain", True),
        ("Stomach ACHE", True),
        ("itchy rash on my arm", True),
        ("headache", True),
        ("mild cough", False),
        ("fever", False),
        ("", False),
        (None, False),
    ],
)
def test_needs_body_location_keyword_match(symptom, expected):
    assert needs_body_location(symptom) is expected


def _walk(symptom: str, severity_enabled: bool = False) -> list[Phase]:
    state = initial_state()
    visited = [state.conversation_phase]
    answers = iter([symptom, "left side", "3 days", "worse at night", "6/10"])
    while state.conversation_phase is not Phase.SUMMARY:
        state = advance(state, next(answers), severity_enabled=severity_enabled).new_state
        visited.append(state.conversation_phase)
    return visited


@pytest.mark.parametrize("symptom", ["knee pain", "back ache", "swelling", "lump in neck"])
def test_location_variant_visits_location(symptom):
    assert _walk(symptom) == [
        Phase.SYMPTOM,
        Phase.LOCATION,
        Phase.DURATION,
        Phase.CONTEXT,
        Phase.SUMMARY,
    ]


@pytest.mark.parametrize("symptom", ["cough", "fever", "fatigue", "dizziness"])
def test_non_location_variant_never_visits_location(symptom):
    visited = _walk(symptom)
    assert Phase.LOCATION not in visited
    assert visited == [Phase.SYMPTOM, Phase.DURATION, Phase.CONTEXT, Phase.SUMMARY]


def test_severity_phase_visited_only_when_enabled():
    assert Phase.SEVERITY not in _walk("cough")
    assert _walk("cough", severity_enabled=True) == [
        Phase.SYMPTOM,
        Phase.DURATION,
        Phase.CONTEXT,
        Phase.SEVERITY,
        Phase.SUMMARY,
    ]


def test_advance_from_symptom_decides_location_once():
    result = advance(initial_state(), "sharp knee pain")

    assert result.phase is Phase.LOCATION
    assert result.message == LOCATION_QUESTION
    assert result.new_state.symptom == "sharp knee pain"
    assert result.new_state.requires_location is True


def test_advance_without_location_goes_to_duration():
    result = advance(initial_state(), "mild cough")

    assert result.phase is Phase.DURATION
    assert result.message == DURATION_QUESTION
    assert result.new_state.requires_location is False
    assert result.new_state.body_location is None


def test_advance_does_not_modify_input_state():
    state = initial_state()
    advance(state, "mild cough")

    assert state.symptom is None
    assert state.conversation_phase is Phase.SYMPTOM


def test_context_question_uses_symptom_hint():
    result = advance(
        ConversationState(symptom="bad headache", conversation_phase=Phase.DURATION),
        "2 hours",
    )

    assert result.phase is Phase.CONTEXT
    assert result.message == context_question("bad headache")
    assert "throbbing or constant" in result.message
    assert "recent lifestyle changes" in result.message


def test_context_answer_moves_to_summary():
    state = ConversationState(
        symptom="cough",
        duration="3 days",
        conversation_phase=Phase.CONTEXT,
    )
    result = advance(state, "dry and tickly")

    assert result.phase is Phase.SUMMARY
    assert result.message == SUMMARY_PROMPT
    assert result.new_state.contextual_info == "dry and tickly"


def test_context_answer_moves_to_severity_when_enabled():
    state = ConversationState(symptom="cough", duration="3 days", conversation_phase=Phase.CONTEXT)
    result = advance(state, "dry", severity_enabled=True)

    assert result.phase is Phase.SEVERITY
    assert result.message == SEVERITY_QUESTION


def test_blank_answer_is_recorded_as_skipped():
    state = ConversationState(symptom="cough", conversation_phase=Phase.DURATION)
    result = advance(state, "   ")

    assert result.phase is Phase.CONTEXT
    assert result.new_state.duration is None
    assert "duration" in result.new_state.skipped_fields
    assert missing_fields(result.new_state) == ["contextual_info"]


def test_summary_phase_is_terminal():
    state = ConversationState(symptom="cough", duration="3 days", conversation_phase=Phase.SUMMARY)
    result = advance(state, "anything else")

    assert result.phase is Phase.SUMMARY
    assert result.message == PROCESSING_MESSAGE
    assert result.new_state == state


def test_phase_sequence_variants():
    assert phase_sequence(False) == (Phase.SYMPTOM, Phase.DURATION, Phase.CONTEXT, Phase.SUMMARY)
    assert Phase.LOCATION in phase_sequence(True)
    assert Phase.SEVERITY in phase_sequence(False, severity_enabled=True)


def test_validate_transition_accepts_forward_move():
    previous = initial_state()
    candidate = previous.evolve(symptom="cough", conversation_phase=Phase.DURATION)

    validate_transition(previous, candidate)


def test_validate_transition_rejects_backward_move():
    previous = ConversationState(symptom="cough", duration="2 days", conversation_phase=Phase.CONTEXT)
    candidate = previous.evolve(conversation_phase=Phase.DURATION)

    with pytest.raises(IncompleteResponseError):
        validate_transition(previous, candidate)


def test_validate_transition_rejects_staying_put():
    previous = initial_state()
    with pytest.raises(IncompleteResponseError):
        validate_transition(previous, previous.evolve(symptom="cough"))


def test_validate_transition_rejects_location_for_non_location_symptom():
    previous = initial_state()
    candidate = previous.evolve(symptom="cough", conversation_phase=Phase.LOCATION)

    with pytest.raises(IncompleteResponseError, match="not part"):
        validate_transition(previous, candidate)


def test_validate_transition_rejects_stray_body_location():
    previous = initial_state()
    candidate = previous.evolve(
        symptom="cough",
        body_location="chest",
        conversation_phase=Phase.DURATION,
    )

    with pytest.raises(IncompleteResponseError):
        validate_transition(previous, candidate)


def test_validate_transition_rejects_skipping_unanswered_phase():
    previous = initial_state()
    candidate = previous.evolve(symptom="cough", conversation_phase=Phase.CONTEXT)

    with pytest.raises(IncompleteResponseError, match="duration"):
        validate_transition(previous, candidate)
