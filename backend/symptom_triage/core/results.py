"""Immutable outputs of the generation and classification passes."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .state import ConversationState, Phase
from .types import UrgencyLevel


@dataclass(frozen=True)
class NextQuestionResult:
    message: str
    new_state: ConversationState
    phase: Phase


@dataclass(frozen=True)
class SummaryResult:
    text: str
    tips: tuple[str, ...] = ()


@dataclass(frozen=True)
class RecommendationResult:
    recommendation: str
    urgency_level: UrgencyLevel
    advice: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommendation": self.recommendation,
            "urgency_level": self.urgency_level,
            "advice": self.advice,
        }


@dataclass(frozen=True)
class PriorSymptomSnapshot:
    """A previously logged symptom offered to the related-symptom check."""

    id: str
    symptom_name: str
    body_location: str | None = None
    duration: str | None = None
    severity: str | None = None
    description: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symptom_name": self.symptom_name,
            "body_location": self.body_location,
            "duration": self.duration,
            "severity": self.severity,
            "description": self.description,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class RelatedSymptomInsight:
    summary: str
    recommendation: str
    linked_symptom_ids: tuple[str, ...] = field(default_factory=tuple)
