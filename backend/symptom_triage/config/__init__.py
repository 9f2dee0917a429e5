"""Configuration module for symptom triage."""
from .settings import TriageSettings, build_services, load_gateway_config

__all__ = [
    "TriageSettings",
    "build_services",
    "load_gateway_config",
]
