"""Common type definitions for the symptom triage core."""
from typing import Dict, List, Literal

# Type aliases for clarity
ChatMessage = Dict[str, str]  # {"role": "user"|"assistant", "content": "text", "timestamp": "..."}
ChatHistory = List[ChatMessage]

UrgencyLevel = Literal["low", "medium", "high", "urgent"]
SeverityLevel = Literal["low", "medium", "high"]

URGENCY_LEVELS: tuple[str, ...] = ("low", "medium", "high", "urgent")
