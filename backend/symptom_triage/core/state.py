"""Conversation state for the guided symptom intake."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping


class Phase(str, Enum):
    """Intake phases, in forward order."""

    INITIAL = "initial"
    SYMPTOM = "symptom"
    LOCATION = "location"
    DURATION = "duration"
    CONTEXT = "context"
    SEVERITY = "severity"
    SUMMARY = "summary"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER: tuple[Phase, ...] = tuple(Phase)

# Field answered by the question each phase asks.
PHASE_FIELDS: dict[Phase, str] = {
    Phase.SYMPTOM: "symptom",
    Phase.LOCATION: "body_location",
    Phase.DURATION: "duration",
    Phase.CONTEXT: "contextual_info",
    Phase.SEVERITY: "severity",
}

EDITABLE_FIELDS: tuple[str, ...] = (
    "symptom",
    "body_location",
    "duration",
    "contextual_info",
    "severity",
)

_WIRE_KEYS: dict[str, str] = {
    "symptom": "symptom",
    "body_location": "bodyLocation",
    "duration": "duration",
    "contextual_info": "contextualInfo",
    "severity": "severity",
}


@dataclass(frozen=True)
class ConversationState:
    """Snapshot of what has been captured so far.

    Instances are never mutated: each transition builds a new state with
    :meth:`evolve`, so earlier snapshots stay valid as an undo trail.
    """

    symptom: str | None = None
    body_location: str | None = None
    duration: str | None = None
    contextual_info: str | None = None
    severity: str | None = None
    conversation_phase: Phase = Phase.SYMPTOM
    requires_location: bool = False
    skipped_fields: frozenset[str] = field(default_factory=frozenset)

    def evolve(self, **changes: Any) -> "ConversationState":
        return replace(self, **changes)

    def value_of(self, field_name: str) -> str | None:
        return getattr(self, field_name)

    def is_answered(self, field_name: str) -> bool:
        value = self.value_of(field_name)
        if value is not None and value.strip():
            return True
        return field_name in self.skipped_fields

    def to_wire(self) -> dict[str, Any]:
        """camelCase form used in model prompts."""
        payload: dict[str, Any] = {
            wire_key: getattr(self, attr) for attr, wire_key in _WIRE_KEYS.items()
        }
        payload["conversationPhase"] = self.conversation_phase.value
        payload["requiresLocation"] = self.requires_location
        return payload

    def merge_wire(
        self,
        payload: Mapping[str, Any],
        only: Iterable[str] | None = None,
    ) -> "ConversationState":
        """Overlay the text fields of a camelCase payload onto this state.

        Keys that are absent keep their current value; non-string values are
        ignored. When ``only`` is given, other fields are never touched.
        Phase and ``requiresLocation`` are left to the caller.
        """
        allowed = set(_WIRE_KEYS) if only is None else set(only)
        changes: dict[str, Any] = {}
        for attr, wire_key in _WIRE_KEYS.items():
            if attr not in allowed:
                continue
            if wire_key not in payload:
                continue
            raw = payload[wire_key]
            if raw is None:
                changes[attr] = None
            elif isinstance(raw, str):
                changes[attr] = raw.strip() or None
        return self.evolve(**changes)


def initial_state(phase: Phase = Phase.SYMPTOM) -> ConversationState:
    """State for a fresh session; the greeting has already asked for the symptom."""
    return ConversationState(conversation_phase=phase, requires_location=False)
