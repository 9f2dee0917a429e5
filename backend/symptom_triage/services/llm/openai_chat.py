"""Chat-completion wire protocol (OpenAI compatible)."""
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
    provider: ProviderConfig,
    temperature: float,
) -> dict[str, Any]:
    return {
        "model": provider.model,
        "temperature": temperature,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }


def extract_content(payload: object) -> str:
    try:
        content = payload["choices"][0]["message"]["content"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content.strip():
        raise ProviderError("OpenAI response missing content")
    return content


async def send(
    client: httpx.AsyncClient,
    system_prompt: str,
    user_prompt: str,
    provider: ProviderConfig,
    temperature: float,
) -> str:
    if not provider.api_key:
        raise ConfigurationError("Missing OpenAI API key")

    try:
        response = await client.post(
            f"{provider.base_url.rstrip('/')}/chat/completions",
            headers={
                "Authorization": f"Bearer {provider.api_key}",
                "Content-Type": "application/json",
            },
            json=build_request_body(system_prompt, user_prompt, provider, temperature),
        )
    except httpx.HTTPError as err:
        raise ProviderError(f"OpenAI request failed: {err}") from err

    if response.status_code >= 400:
        raise ProviderError(
            f"OpenAI request failed: {provider_error_message(response)}",
            status_code=response.status_code,
        )
    return extract_content(decode_response_json(response, "OpenAI"))
