"""
Symptom Triage Package.

This package provides a guided symptom-intake conversation with:
- A deterministic phase engine for the intake questions
- An AI gateway speaking the chat-completion and generate-content protocols
- Summary, recommendation and related-symptom generators with fallbacks
- A rule-based urgency classifier and severity banding

Core components:
    - agents: Phase engine, generators and session orchestration
    - services: AI gateway and provider protocols
    - storage: Symptom/conversation records and session registry
    - core: State, results, schemas and structured logging
    - config: Settings and service factory
"""

# Agents first: core.error_mapping depends on the parser module.
from .agents.triage import (
    IntakeSession,
    classify,
    derive_severity_level,
    generate_next_question,
    generate_recommendation,
    generate_related_symptom_insight,
    generate_summary,
    start_session,
)
from .core import ConversationState, Phase, initial_state
from .config import TriageSettings, build_services

__all__ = [
    # Agents
    "IntakeSession",
    "classify",
    "derive_severity_level",
    "generate_next_question",
    "generate_recommendation",
    "generate_related_symptom_insight",
    "generate_summary",
    "start_session",
    # Core
    "ConversationState",
    "Phase",
    "initial_state",
    # Config
    "TriageSettings",
    "build_services",
]

__version__ = "1.0.0"
