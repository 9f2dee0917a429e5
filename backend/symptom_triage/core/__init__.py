"""Core types, state and schemas for symptom triage."""
from .types import ChatMessage, ChatHistory, SeverityLevel, UrgencyLevel, URGENCY_LEVELS
from .state import EDITABLE_FIELDS, PHASE_FIELDS, ConversationState, Phase, initial_state
from .results import (
    NextQuestionResult,
    PriorSymptomSnapshot,
    RecommendationResult,
    RelatedSymptomInsight,
    SummaryResult,
)
from .schemas import (
    ClassifyRequest,
    ConfirmResponse,
    ConversationStateModel,
    CreateSessionRequest,
    FieldEditRequest,
    MessageRequest,
    MessageResponse,
    NextQuestionRequest,
    NextQuestionResponse,
    PriorSymptomResponse,
    RecommendationRequest,
    RecommendationResponse,
    RelatedInsightResponse,
    SessionResponse,
    SeverityRequest,
    SeverityResponse,
    StatusResponse,
    SummaryRequest,
    SummaryResponse,
)

__all__ = [
    # Types
    "ChatMessage",
    "ChatHistory",
    "SeverityLevel",
    "UrgencyLevel",
    "URGENCY_LEVELS",
    # State
    "EDITABLE_FIELDS",
    "PHASE_FIELDS",
    "ConversationState",
    "Phase",
    "initial_state",
    # Results
    "NextQuestionResult",
    "PriorSymptomSnapshot",
    "RecommendationResult",
    "RelatedSymptomInsight",
    "SummaryResult",
    # Schemas
    "ClassifyRequest",
    "ConfirmResponse",
    "ConversationStateModel",
    "CreateSessionRequest",
    "FieldEditRequest",
    "MessageRequest",
    "MessageResponse",
    "NextQuestionRequest",
    "NextQuestionResponse",
    "PriorSymptomResponse",
    "RecommendationRequest",
    "RecommendationResponse",
    "RelatedInsightResponse",
    "SessionResponse",
    "SeverityRequest",
    "SeverityResponse",
    "StatusResponse",
    "SummaryRequest",
    "SummaryResponse",
]
