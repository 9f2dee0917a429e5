"""Utility functions for parsing model responses."""
import json
import re
from typing import Any

_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class ParseError(ValueError):
    """Raised when no JSON object can be recovered from model output."""


class IncompleteResponseError(ParseError):
    """Raised when a parsed payload lacks required fields or is inconsistent."""


def extract_structured(raw_text: str) -> dict[str, Any]:
    """
    Recover a JSON object from raw model output.

    Tries a strict parse of the trimmed text first. Models sometimes wrap the
    JSON in prose or code fences despite instructions, so on failure the
    greedy first-brace-to-last-brace span is parsed instead. If that fails
    too, the original decode error is the one reported.
    """
    trimmed = (raw_text or "").strip()
    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError as original_error:
        match = _OBJECT_PATTERN.search(trimmed)
        if match is None:
            raise ParseError(f"Model output is not JSON: {original_error}") from original_error
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            raise ParseError(f"Model output is not JSON: {original_error}") from original_error

    if not isinstance(parsed, dict):
        raise ParseError("Model output is valid JSON but not an object")
    return parsed


def require_fields(payload: dict[str, Any], *names: str) -> None:
    """Raise IncompleteResponseError unless every field is present and non-blank."""
    missing = []
    for name in names:
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    if missing:
        raise IncompleteResponseError(
            f"Model response missing required fields: {', '.join(missing)}"
        )
