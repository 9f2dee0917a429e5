"""Prompt templates for the triage workflows."""
from .interaction import NEXT_QUESTION_SYSTEM_PROMPT
from .recommendation import RECOMMENDATION_SYSTEM_PROMPT
from .related import RELATED_SYMPTOM_SYSTEM_PROMPT
from .summary import SUMMARY_SYSTEM_PROMPT

__all__ = [
    "NEXT_QUESTION_SYSTEM_PROMPT",
    "RECOMMENDATION_SYSTEM_PROMPT",
    "RELATED_SYMPTOM_SYSTEM_PROMPT",
    "SUMMARY_SYSTEM_PROMPT",
]
