"""
Configuration module.

Provides the declarative AI provider settings loaded at process start.

Usage:
    from src.config import load_providers_config

    config = load_providers_config()
    if config.enable_fallback:
        ...
"""

from src.config.providers import (
    AIProvidersConfig,
    ProviderConfig,
    load_providers_config,
    parse_providers_config,
)

__all__ = [
    "AIProvidersConfig",
    "ProviderConfig",
    "load_providers_config",
    "parse_providers_config",
]
