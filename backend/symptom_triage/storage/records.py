"""Record shapes exchanged with the persistence collaborator."""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..core.results import PriorSymptomSnapshot
from ..core.types import ChatHistory, UrgencyLevel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SymptomRecord(BaseModel):
    """One logged symptom."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    symptom_name: str
    body_location: Optional[str] = None
    duration: str
    description: str
    severity: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    model_config = ConfigDict(extra="forbid")


class ConversationRecord(BaseModel):
    """The finished intake conversation that produced a symptom record."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    symptom_id: Optional[str] = None
    messages: ChatHistory = Field(default_factory=list)
    summary: Optional[str] = None
    recommendation: Optional[str] = None
    urgency_level: UrgencyLevel = "low"
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    model_config = ConfigDict(extra="forbid")


def to_prior_snapshot(record: SymptomRecord) -> PriorSymptomSnapshot:
    return PriorSymptomSnapshot(
        id=record.id,
        symptom_name=record.symptom_name,
        body_location=record.body_location,
        duration=record.duration,
        severity=record.severity,
        description=record.description,
        created_at=record.created_at.isoformat(),
    )
