"""Single entry point for text generation across providers."""
from __future__ import annotations

import time
from dataclasses import dataclass

import httpx

from ...core.logging_utils import log_provider_call
from . import gemini, openai_chat
from .base import (
    DEFAULT_TEMPERATURE,
    ConfigurationError,
    ProtocolSender,
    ProviderConfig,
)

SUPPORTED_PROVIDERS: tuple[str, ...] = ("openai", "gemini")

_PROTOCOLS: dict[str, ProtocolSender] = {
    "openai": openai_chat.send,
    "gemini": gemini.send,
}

_DISPLAY_NAMES: dict[str, str] = {"openai": "OpenAI", "gemini": "Gemini"}


@dataclass(frozen=True)
class GatewayConfig:
    """Provider selection resolved once at process start."""

    provider: str | None
    openai: ProviderConfig
    gemini: ProviderConfig
    temperature: float = DEFAULT_TEMPERATURE
    timeout_s: float = 30.0

    @property
    def active(self) -> ProviderConfig | None:
        if self.provider == "openai":
            return self.openai
        if self.provider == "gemini":
            return self.gemini
        return None

    @property
    def is_configured(self) -> bool:
        active = self.active
        return active is not None and active.has_credentials


class AIGateway:
    """Sends one system + user prompt pair to the configured provider.

    The wire protocol is picked once from ``config.provider``. No retries
    happen here; callers fall back to deterministic output instead.
    """

    def __init__(
        self,
        config: GatewayConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._sender: ProtocolSender | None = (
            _PROTOCOLS.get(config.provider) if config.provider else None
        )
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_s)
        return self._client

    async def send(self, system_prompt: str, user_prompt: str) -> str:
        provider = self.config.active
        if self._sender is None or provider is None:
            raise ConfigurationError(
                "AI provider is not configured. Provide either OPENAI_API_KEY or GEMINI_API_KEY."
            )

        if not provider.has_credentials:
            raise ConfigurationError(f"Missing {_DISPLAY_NAMES[provider.name]} API key")

        started_at = time.perf_counter()
        ok = False
        try:
            text = await self._sender(
                self._get_client(),
                system_prompt,
                user_prompt,
                provider,
                self.config.temperature,
            )
            ok = True
            return text
        finally:
            log_provider_call(
                provider=provider.name,
                model=provider.model,
                duration_s=time.perf_counter() - started_at,
                ok=ok,
            )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
