"""Shared error code mapping for generation and persistence failures."""
from typing import Any

from ..agents.triage.utils import IncompleteResponseError, ParseError
from ..services.llm.base import ConfigurationError, ProviderError
from ..storage.store import PersistenceError

ERROR_CODE_NOT_CONFIGURED = "AI_PROVIDER_NOT_CONFIGURED"
ERROR_CODE_PROVIDER = "AI_PROVIDER_FAILED"
ERROR_CODE_INVALID_JSON = "AI_INVALID_JSON"
ERROR_CODE_INCOMPLETE = "AI_INCOMPLETE_RESPONSE"
ERROR_CODE_PERSISTENCE = "PERSISTENCE_FAILED"
ERROR_CODE_GENERIC = "GENERATION_FAILED"


def classify_error_code(error: BaseException) -> str:
    """Classify a failure into a stable error code."""
    if isinstance(error, ConfigurationError):
        return ERROR_CODE_NOT_CONFIGURED
    if isinstance(error, ProviderError):
        return ERROR_CODE_PROVIDER
    # IncompleteResponseError subclasses ParseError, so test it first.
    if isinstance(error, IncompleteResponseError):
        return ERROR_CODE_INCOMPLETE
    if isinstance(error, ParseError):
        return ERROR_CODE_INVALID_JSON
    if isinstance(error, PersistenceError):
        return ERROR_CODE_PERSISTENCE
    return ERROR_CODE_GENERIC


def build_error_payload(
    code: str,
    message: str,
    details: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"code": code, "message": message}
    if details:
        payload["details"] = details
    return payload


def build_error_payload_from_exception(error: BaseException, message: str) -> dict[str, Any]:
    """Build standardized error payload for an exception."""
    return build_error_payload(
        classify_error_code(error),
        message,
        details=str(error) or None,
    )


def describe_error(error: BaseException) -> dict[str, Any]:
    """Log details for a failure that was absorbed by a fallback."""
    details: dict[str, Any] = {
        "error_code": classify_error_code(error),
        "error_type": type(error).__name__,
        "error": str(error),
    }
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        details["status_code"] = status_code
    return details
