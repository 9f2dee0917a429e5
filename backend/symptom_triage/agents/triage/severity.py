"""Severity banding for the extended intake flow."""
from __future__ import annotations

import re

from ...core.types import SeverityLevel

# Checked in order; the compound descriptor must precede "moderate".
_DESCRIPTOR_LEVELS: tuple[tuple[str, SeverityLevel], ...] = (
    ("mild", "low"),
    ("light", "low"),
    ("moderate-to-severe", "high"),
    ("moderate", "medium"),
    ("severe", "high"),
    ("intense", "high"),
)

CRITICAL_SYMPTOM_KEYWORDS: tuple[str, ...] = (
    "chest",
    "breath",
    "breathing",
    "vision",
    "speech",
    "numb arm",
)
LOW_PRIORITY_SYMPTOM_KEYWORDS: tuple[str, ...] = ("headache", "migraine", "tension headache")

_SCORE_PATTERN = re.compile(r"(\d+(\.\d+)?)")


def parse_severity_score(severity_text: str | None) -> float | None:
    """First number in the text, clamped to the 0-10 scale."""
    if not severity_text:
        return None
    match = _SCORE_PATTERN.search(severity_text)
    if not match:
        return None
    value = float(match.group(1))
    return min(10.0, max(0.0, value))


def _band_score(score: float) -> SeverityLevel:
    if score <= 3:
        return "low"
    if score <= 6:
        return "medium"
    return "high"


def derive_severity_level(
    symptom: str | None,
    severity_text: str | None,
) -> SeverityLevel:
    """
    Map free-text or numeric severity onto low/medium/high.

    Descriptor words win over numbers, numbers win over phrase heuristics,
    and the default is medium. The symptom then nudges the band: critical
    keywords escalate one step, low-priority ones turn medium into low.
    """
    lower_severity = (severity_text or "").lower()
    level: SeverityLevel = "medium"

    descriptor_level = next(
        (mapped for descriptor, mapped in _DESCRIPTOR_LEVELS if descriptor in lower_severity),
        None,
    )
    if descriptor_level is not None:
        level = descriptor_level
    else:
        score = parse_severity_score(severity_text)
        if score is not None:
            level = _band_score(score)
        elif "worse" in lower_severity or "can't cope" in lower_severity:
            level = "high"
        elif "manageable" in lower_severity or "mild" in lower_severity:
            level = "low"

    if symptom:
        lower_symptom = symptom.lower()
        if any(keyword in lower_symptom for keyword in CRITICAL_SYMPTOM_KEYWORDS):
            level = "medium" if level == "low" else "high"
        elif level == "medium" and any(
            keyword in lower_symptom for keyword in LOW_PRIORITY_SYMPTOM_KEYWORDS
        ):
            level = "low"

    return level
