"""API request and response schemas for the symptom triage service."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .results import (
    PriorSymptomSnapshot,
    RecommendationResult,
    RelatedSymptomInsight,
    SummaryResult,
)
from .state import ConversationState, Phase
from .types import ChatHistory, SeverityLevel, UrgencyLevel

EditableField = Literal["symptom", "body_location", "duration", "contextual_info", "severity"]


# ============= Shared Models =============

class ConversationStateModel(BaseModel):
    """Wire form of the conversation state."""

    symptom: Optional[str] = None
    body_location: Optional[str] = None
    duration: Optional[str] = None
    contextual_info: Optional[str] = None
    severity: Optional[str] = None
    conversation_phase: Phase = Phase.SYMPTOM
    requires_location: bool = False
    skipped_fields: List[EditableField] = Field(default_factory=list)
    model_config = ConfigDict(extra="forbid")

    def to_state(self) -> ConversationState:
        return ConversationState(
            symptom=self.symptom,
            body_location=self.body_location,
            duration=self.duration,
            contextual_info=self.contextual_info,
            severity=self.severity,
            conversation_phase=self.conversation_phase,
            requires_location=self.requires_location,
            skipped_fields=frozenset(self.skipped_fields),
        )

    @classmethod
    def from_state(cls, state: ConversationState) -> "ConversationStateModel":
        return cls(
            symptom=state.symptom,
            body_location=state.body_location,
            duration=state.duration,
            contextual_info=state.contextual_info,
            severity=state.severity,
            conversation_phase=state.conversation_phase,
            requires_location=state.requires_location,
            skipped_fields=sorted(state.skipped_fields),
        )


# ============= Request Schemas =============

class NextQuestionRequest(BaseModel):
    """Request schema for /next-question.

    A blank ``user_message`` records the current question as skipped.
    """

    state: ConversationStateModel = Field(default_factory=ConversationStateModel)
    user_message: str = Field(default="", description="The user's latest answer")
    model_config = ConfigDict(extra="forbid")


class SummaryRequest(BaseModel):
    state: ConversationStateModel
    additional_info: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class RecommendationRequest(BaseModel):
    state: ConversationStateModel
    summary: Optional[str] = Field(default=None, description="Summary text, if already generated")
    additional_info: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class ClassifyRequest(BaseModel):
    symptom: Optional[str] = None
    duration: Optional[str] = None
    context: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class SeverityRequest(BaseModel):
    symptom: Optional[str] = None
    severity: Optional[str] = Field(default=None, description="Free text or 0-10 score")
    model_config = ConfigDict(extra="forbid")


class CreateSessionRequest(BaseModel):
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the session; required for history lookups and saving",
    )
    model_config = ConfigDict(extra="forbid")


class MessageRequest(BaseModel):
    content: str = Field(default="", description="User message text")
    model_config = ConfigDict(extra="forbid")


class FieldEditRequest(BaseModel):
    """Edit one captured field. A null or blank value clears it."""

    field: EditableField
    value: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


# ============= Response Schemas =============

class NextQuestionResponse(BaseModel):
    message: str
    new_state: ConversationStateModel
    phase: Phase


class SummaryResponse(BaseModel):
    summary: str
    tips: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: SummaryResult) -> "SummaryResponse":
        return cls(summary=result.text, tips=list(result.tips))


class RecommendationResponse(BaseModel):
    recommendation: str
    urgency_level: UrgencyLevel
    advice: str

    @classmethod
    def from_result(cls, result: RecommendationResult) -> "RecommendationResponse":
        return cls(**result.to_dict())


class SeverityResponse(BaseModel):
    severity_level: SeverityLevel


class PriorSymptomResponse(BaseModel):
    """A recently logged symptom that was compared with the current one."""

    id: str
    symptom_name: str
    body_location: Optional[str] = None
    duration: Optional[str] = None
    severity: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: PriorSymptomSnapshot) -> "PriorSymptomResponse":
        return cls(**snapshot.to_dict())


class RelatedInsightResponse(BaseModel):
    summary: str
    recommendation: str
    linked_symptom_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: RelatedSymptomInsight) -> "RelatedInsightResponse":
        return cls(
            summary=result.summary,
            recommendation=result.recommendation,
            linked_symptom_ids=list(result.linked_symptom_ids),
        )


class SessionResponse(BaseModel):
    """Snapshot of an intake session."""

    session_id: str
    user_id: Optional[str] = None
    state: ConversationStateModel
    messages: ChatHistory = Field(default_factory=list)
    additional_info: Optional[str] = None
    summary: Optional[SummaryResponse] = None
    recommendation: Optional[RecommendationResponse] = None
    related_symptoms: List[PriorSymptomResponse] = Field(default_factory=list)
    related_insight: Optional[RelatedInsightResponse] = None
    related_error: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    reply: Optional[str] = Field(
        default=None,
        description="Assistant reply; null when the message finalized the summary",
    )
    session: SessionResponse


class ConfirmResponse(BaseModel):
    """Envelope response from /sessions/{id}/confirm."""

    success: bool = Field(..., description="Whether the records were saved")
    data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Saved symptom and conversation records",
    )
    error: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Error metadata when success is false",
    )
    model_config = ConfigDict(extra="forbid")


class StatusResponse(BaseModel):
    """Generic status response for health check endpoints."""
    status: str = Field(..., description="Service status")
    system: Optional[str] = Field(None, description="System identifier")
    ai_provider: Optional[str] = Field(None, description="Configured AI provider, if any")
