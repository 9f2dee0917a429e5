"""Shared types and errors for text-generation providers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

DEFAULT_TEMPERATURE = 0.2


@dataclass(frozen=True)
class ProviderConfig:
    """Credentials and endpoint for one provider."""

    name: str
    api_key: str | None
    model: str
    base_url: str

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)


class AIGatewayError(RuntimeError):
    """Base runtime error for text-generation failures."""


class ConfigurationError(AIGatewayError):
    """Raised when no provider is configured or its credential is missing."""


class ProviderError(AIGatewayError):
    """Raised when the provider call fails or the reply lacks its content field."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# (client, system_prompt, user_prompt, provider, temperature) -> text
ProtocolSender = Callable[
    [httpx.AsyncClient, str, str, ProviderConfig, float],
    Awaitable[str],
]


def provider_error_message(response: httpx.Response) -> str:
    """Best-effort human readable error from a failed provider response."""
    message = response.text.strip()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {response.status_code}"


def decode_response_json(response: httpx.Response, label: str) -> object:
    try:
        return response.json()
    except ValueError as err:
        raise ProviderError(
            f"{label} response is not valid JSON",
            status_code=response.status_code,
        ) from err
