"""Deterministic urgency tiers for triage recommendations.

The tiers, their order and their keyword sets are a clinically reviewed
contract. Matching is plain case-insensitive substring containment.
"""
from __future__ import annotations

from dataclasses import dataclass

from ...core.results import RecommendationResult
from ...core.state import ConversationState
from ...core.types import UrgencyLevel


@dataclass(frozen=True)
class UrgencyTier:
    """One entry of the ordered decision list."""

    level: UrgencyLevel
    recommendation: str
    advice: str
    symptom_any: tuple[str, ...] = ()
    # (symptom term, context terms): symptom term plus any context term matches.
    symptom_with_context: tuple[tuple[str, tuple[str, ...]], ...] = ()
    duration_any: tuple[str, ...] = ()
    # (symptom term, duration terms)
    symptom_with_duration: tuple[tuple[str, tuple[str, ...]], ...] = ()

    def matches(self, symptom: str, duration: str, context: str) -> bool:
        if any(term in symptom for term in self.symptom_any):
            return True
        for symptom_term, context_terms in self.symptom_with_context:
            if symptom_term in symptom and any(term in context for term in context_terms):
                return True
        if any(term in duration for term in self.duration_any):
            return True
        for symptom_term, duration_terms in self.symptom_with_duration:
            if symptom_term in symptom and any(term in duration for term in duration_terms):
                return True
        return False


_TIERS: tuple[UrgencyTier, ...] = (
    UrgencyTier(
        level="urgent",
        recommendation="Call 999 immediately",
        advice="This requires immediate emergency attention. Please call 999 or go to A&E right away.",
        symptom_any=(
            "chest pain",
            "difficulty breathing",
            "severe bleeding",
            "loss of consciousness",
            "seizure",
        ),
        symptom_with_context=(("headache", ("sudden", "worst ever")),),
    ),
    UrgencyTier(
        level="high",
        recommendation="Contact your GP or call 111",
        advice=(
            "You should book a GP appointment within the next 24-48 hours, "
            "or call 111 for further guidance if symptoms worsen."
        ),
        symptom_any=("high fever", "persistent vomiting", "severe pain"),
        symptom_with_context=(("pain", ("severe",)),),
        duration_any=("week", "month"),
    ),
    UrgencyTier(
        level="medium",
        recommendation="Book a GP appointment",
        advice="Consider booking a GP appointment within the next week to discuss these symptoms further.",
        symptom_any=("persistent", "recurring"),
        symptom_with_duration=(("cough", ("week",)),),
    ),
)

SELF_CARE_RECOMMENDATION = "Self-care and monitoring"
MONITORING_REMINDER = "Continue to monitor your symptoms and log any changes in this app."

GENERIC_SELF_CARE_ADVICE = (
    "Monitor your symptoms, stay hydrated, and rest. "
    "If symptoms persist or worsen, consider contacting your GP."
)


def _self_care_advice(symptom: str) -> str:
    if "headache" in symptom:
        return (
            "Stay hydrated, rest in a quiet, dark room, and consider over-the-counter "
            "pain relief such as paracetamol or ibuprofen."
        )
    if "cough" in symptom:
        return (
            "Stay hydrated, rest, use honey and lemon for soothing, and consider "
            "over-the-counter cough remedies if needed."
        )
    if "sore throat" in symptom:
        return (
            "Gargle with warm salt water, stay hydrated, and consider throat lozenges "
            "or over-the-counter pain relief."
        )
    if "pain" in symptom and ("leg" in symptom or "muscle" in symptom):
        return (
            "Rest the affected area, apply ice if swollen, and consider over-the-counter "
            "anti-inflammatory medication such as ibuprofen."
        )
    if "fatigue" in symptom:
        return (
            "Ensure adequate sleep, maintain a balanced diet, stay hydrated, "
            "and consider gentle exercise."
        )
    return GENERIC_SELF_CARE_ADVICE


def classify(
    symptom_text: str | None,
    duration_text: str | None,
    context_text: str | None,
) -> RecommendationResult:
    """
    Map captured symptom text onto an urgency tier.

    Tiers are evaluated in order and the first match wins; anything that
    matches no tier gets keyword-specific self-care advice.
    """
    symptom = (symptom_text or "").lower()
    duration = (duration_text or "").lower()
    context = (context_text or "").lower()

    for tier in _TIERS:
        if tier.matches(symptom, duration, context):
            return RecommendationResult(
                recommendation=tier.recommendation,
                urgency_level=tier.level,
                advice=tier.advice,
            )

    return RecommendationResult(
        recommendation=SELF_CARE_RECOMMENDATION,
        urgency_level="low",
        advice=f"{_self_care_advice(symptom)} {MONITORING_REMINDER}",
    )


def classify_state(
    state: ConversationState,
    additional_info: str | None = None,
) -> RecommendationResult:
    """Classify a conversation; late additional info counts as context."""
    context = f"{state.contextual_info or ''} {additional_info or ''}"
    return classify(state.symptom, state.duration, context)
