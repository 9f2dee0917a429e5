"""Text-generation gateway module."""
from .base import (
    DEFAULT_TEMPERATURE,
    AIGatewayError,
    ConfigurationError,
    ProviderConfig,
    ProviderError,
)
from .gateway import SUPPORTED_PROVIDERS, AIGateway, GatewayConfig

__all__ = [
    "DEFAULT_TEMPERATURE",
    "SUPPORTED_PROVIDERS",
    "AIGateway",
    "AIGatewayError",
    "ConfigurationError",
    "GatewayConfig",
    "ProviderConfig",
    "ProviderError",
]
