"""Configuration and service factory for the symptom triage backend."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..core.logging_utils import log_event
from ..services.llm import (
    SUPPORTED_PROVIDERS,
    AIGateway,
    GatewayConfig,
    ProviderConfig,
)
from ..services.llm.base import DEFAULT_TEMPERATURE
from ..storage import InMemorySymptomStore, SessionRegistry

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_GEMINI_MODEL = "gemini-1.5-pro"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def _get_str_env(env: Mapping[str, str], name: str, default: str | None = None) -> str | None:
    raw = env.get(name)
    if raw is None:
        return default
    cleaned = raw.strip()
    return cleaned if cleaned else default


def _get_float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, str(default))
    try:
        value = float(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be a number") from err
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def _get_int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, str(default))
    try:
        value = int(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be an integer") from err
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def _get_bool_env(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean (true/false)")


def _resolve_provider(env: Mapping[str, str], openai: ProviderConfig, gemini: ProviderConfig) -> str | None:
    explicit = _get_str_env(env, "AI_PROVIDER")
    if explicit is not None:
        normalized = explicit.lower()
        if normalized in SUPPORTED_PROVIDERS:
            return normalized
        supported = ", ".join(SUPPORTED_PROVIDERS)
        raise ValueError(
            f"Unsupported AI_PROVIDER value '{explicit}'. Supported values: {supported}."
        )
    if openai.has_credentials:
        return "openai"
    if gemini.has_credentials:
        return "gemini"
    return None


def load_gateway_config(env: Mapping[str, str] | None = None) -> GatewayConfig:
    """Resolve provider credentials, models and endpoints from the environment."""
    source = os.environ if env is None else env
    openai = ProviderConfig(
        name="openai",
        api_key=_get_str_env(source, "OPENAI_API_KEY"),
        model=_get_str_env(source, "OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        base_url=_get_str_env(source, "OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL),
    )
    gemini = ProviderConfig(
        name="gemini",
        api_key=_get_str_env(source, "GEMINI_API_KEY"),
        model=_get_str_env(source, "GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        base_url=_get_str_env(source, "GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL),
    )
    return GatewayConfig(
        provider=_resolve_provider(source, openai, gemini),
        openai=openai,
        gemini=gemini,
        temperature=DEFAULT_TEMPERATURE,
        timeout_s=_get_float_env(source, "AI_REQUEST_TIMEOUT_S", 30.0),
    )


@dataclass(frozen=True)
class TriageSettings:
    gateway: GatewayConfig
    severity_phase_enabled: bool = False
    related_lookback_days: int = 30
    related_max_symptoms: int = 8
    session_ttl_hours: int = 24
    session_sweep_interval_s: float = 300.0

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "TriageSettings":
        source = os.environ if env is None else env
        return cls(
            gateway=load_gateway_config(source),
            severity_phase_enabled=_get_bool_env(source, "TRIAGE_ENABLE_SEVERITY_PHASE", False),
            related_lookback_days=_get_int_env(source, "TRIAGE_RELATED_LOOKBACK_DAYS", 30),
            related_max_symptoms=_get_int_env(source, "TRIAGE_RELATED_MAX_SYMPTOMS", 8),
            session_ttl_hours=_get_int_env(source, "TRIAGE_SESSION_TTL_HOURS", 24),
            session_sweep_interval_s=_get_float_env(
                source, "TRIAGE_SESSION_SWEEP_INTERVAL_S", 300.0
            ),
        )


def build_services(settings: TriageSettings) -> Dict[str, Any]:
    """
    Build the service instances for one process.

    Returns a dictionary with:
        - 'settings': the resolved TriageSettings
        - 'gateway': AI gateway bound to the configured provider
        - 'store': symptom/conversation record store
        - 'sessions': registry of active intake sessions
    """
    gateway_config = settings.gateway
    if gateway_config.is_configured:
        log_event(
            component="config",
            event="ai_provider_selected",
            details={
                "provider": gateway_config.provider,
                "model": gateway_config.active.model,
            },
        )
    else:
        log_event(
            component="config",
            event="ai_provider_unconfigured",
            level="WARNING",
            details={
                "provider": gateway_config.provider,
                "message": "No AI credentials found; deterministic fallbacks will be used.",
            },
        )

    return {
        "settings": settings,
        "gateway": AIGateway(gateway_config),
        "store": InMemorySymptomStore(),
        "sessions": SessionRegistry(ttl_hours=settings.session_ttl_hours),
    }
