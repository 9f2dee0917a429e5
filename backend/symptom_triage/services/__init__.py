"""Symptom triage services (text generation)."""
from .llm import (
    AIGateway,
    AIGatewayError,
    ConfigurationError,
    GatewayConfig,
    ProviderConfig,
    ProviderError,
)

__all__ = [
    "AIGateway",
    "AIGatewayError",
    "ConfigurationError",
    "GatewayConfig",
    "ProviderConfig",
    "ProviderError",
]
