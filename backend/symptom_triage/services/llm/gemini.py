"""Generate-content wire protocol (Gemini)."""
from __future__ import annotations

from typing import Any

import httpx

from .base import (
    ConfigurationError,
    ProviderConfig,
    ProviderError,
    decode_response_json,
    provider_error_message,
)


def build_request_body(
    system_prompt: str,
    user_prompt: str,
    temperature: float,
) -> dict[str, Any]:
    return {
        "contents": [
            {"role": "user", "parts": [{"text": user_prompt}]},
        ],
        "system_instruction": {
            "role": "system",
            "parts": [{"text": system_prompt}],
        },
        "generationConfig": {"temperature": temperature},
    }


def extract_content(payload: object) -> str:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError):
        text = None
    if not isinstance(text, str) or not text.strip():
        raise ProviderError("Gemini response missing content")
    return text


async def send(
    client: httpx.AsyncClient,
    system_prompt: str,
    user_prompt: str,
    provider: ProviderConfig,
    temperature: float,
) -> str:
    if not provider.api_key:
        raise ConfigurationError("Missing Gemini API key")

    try:
        response = await client.post(
            f"{provider.base_url.rstrip('/')}/models/{provider.model}:generateContent",
            params={"key": provider.api_key},
            headers={"Content-Type": "application/json"},
            json=build_request_body(system_prompt, user_prompt, temperature),
        )
    except httpx.HTTPError as err:
        raise ProviderError(f"Gemini request failed: {err}") from err

    if response.status_code >= 400:
        raise ProviderError(
            f"Gemini request failed: {provider_error_message(response)}",
            status_code=response.status_code,
        )
    return extract_content(decode_response_json(response, "Gemini"))
