"""
AI Provider Configuration.

Declarative per-provider settings consumed by both the adapters and the
registry. Loaded once at process start from YAML and read-only afterwards.

Usage:
    from src.config import load_providers_config

    config = load_providers_config()
    openai = config.config_for("openai")
    print(openai.priority, openai.timeout_seconds)

File layout (config/ai_providers.yaml):
    ai:
      providers:
        default_text_provider: openai
        default_image_provider: openai-image
        enable_fallback: true
        providers:
          - provider_id: openai
            priority: 10
            api_key: ${OPENAI_API_KEY}
            default_model: gpt-4o-mini

String values support ``${VAR}`` and ``${VAR:-default}`` environment
expansion. The ``AI_PROVIDERS_CONFIG`` environment variable overrides the
default file path.
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from src.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "ai_providers.yaml"
CONFIG_PATH_ENV = "AI_PROVIDERS_CONFIG"

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def expand_env(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in a string.

    An unset or empty variable is replaced by its default, or by an empty
    string when no default is given.

    Args:
        value: Raw string from the configuration file

    Returns:
        String with every reference substituted
    """

    def _replace(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1).strip())
        if env_value:
            return env_value
        return match.group(2) or ""

    return _ENV_PATTERN.sub(_replace, value)


@dataclass(frozen=True)
class ProviderConfig:
    """Settings for one provider, keyed by ``provider_id``.

    ``priority`` is only used to order the fallback chain (higher wins).
    ``max_retries`` bounds transport-error retries of generation calls.
    """

    provider_id: str
    enabled: bool = True
    priority: int = 0
    api_key: str | None = None
    base_url: str | None = None
    default_model: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    custom_settings: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not self.provider_id:
            raise ConfigurationError("provider_id must not be empty")
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout_seconds must be positive for provider '{self.provider_id}'"
            )
        if self.max_retries < 0:
            raise ConfigurationError(
                f"max_retries must be zero or positive for provider '{self.provider_id}'"
            )
        if self.retry_backoff_seconds < 0:
            raise ConfigurationError(
                f"retry_backoff_seconds must be zero or positive for provider '{self.provider_id}'"
            )
        object.__setattr__(self, "custom_settings", MappingProxyType(dict(self.custom_settings)))

    @property
    def has_api_key(self) -> bool:
        """True when a non-blank credential is configured."""
        return bool(self.api_key and self.api_key.strip())


@dataclass(frozen=True)
class AIProvidersConfig:
    """Root configuration for all AI providers."""

    providers: tuple[ProviderConfig, ...] = ()
    default_text_provider: str = "openai"
    default_image_provider: str = "openai-image"
    enable_fallback: bool = True

    def get(self, provider_id: str) -> ProviderConfig | None:
        """Return the explicit configuration for a provider, if any."""
        for provider in self.providers:
            if provider.provider_id == provider_id:
                return provider
        return None

    def config_for(self, provider_id: str) -> ProviderConfig:
        """Return the configuration for a provider, falling back to defaults.

        An adapter with no matching entry is enabled, has priority 0 and
        uses the default timeout.
        """
        return self.get(provider_id) or ProviderConfig(provider_id=provider_id)


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = expand_env(str(value)).strip()
    return text or None


def _as_bool(value: Any, name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = expand_env(str(value)).strip().lower()
    if not text:
        return default
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for '{name}': {value!r}")


def _as_number(value: Any, name: str, default: float, cast: type) -> Any:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid number for '{name}': {value!r}")
    if isinstance(value, (int, float)):
        if cast is int and isinstance(value, float) and not value.is_integer():
            raise ConfigurationError(f"Expected a whole number for '{name}': {value!r}")
        return cast(value)
    text = expand_env(str(value)).strip()
    if not text:
        return default
    try:
        return cast(text)
    except ValueError as e:
        raise ConfigurationError(f"Invalid number for '{name}': {value!r}") from e


def _parse_provider(data: Any) -> ProviderConfig:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Provider entry must be a mapping, got {type(data).__name__}")

    provider_id = _as_str(data.get("provider_id"))
    if not provider_id:
        raise ConfigurationError("Provider entry is missing 'provider_id'")

    custom = data.get("custom_settings") or {}
    if not isinstance(custom, dict):
        raise ConfigurationError(f"custom_settings for '{provider_id}' must be a mapping")

    return ProviderConfig(
        provider_id=provider_id,
        enabled=_as_bool(data.get("enabled"), "enabled", True),
        priority=_as_number(data.get("priority"), "priority", 0, int),
        api_key=_as_str(data.get("api_key")),
        base_url=_as_str(data.get("base_url")),
        default_model=_as_str(data.get("default_model")),
        timeout_seconds=_as_number(
            data.get("timeout_seconds"), "timeout_seconds", DEFAULT_TIMEOUT_SECONDS, float
        ),
        max_retries=_as_number(data.get("max_retries"), "max_retries", DEFAULT_MAX_RETRIES, int),
        retry_backoff_seconds=_as_number(
            data.get("retry_backoff_seconds"),
            "retry_backoff_seconds",
            DEFAULT_RETRY_BACKOFF_SECONDS,
            float,
        ),
        custom_settings={str(k): expand_env(str(v)) for k, v in custom.items()},
    )


def parse_providers_config(data: dict[str, Any] | None) -> AIProvidersConfig:
    """Build an ``AIProvidersConfig`` from an already-parsed mapping.

    Accepts either the full document (with the ``ai.providers`` section) or
    the section itself.

    Raises:
        ConfigurationError: If the mapping is malformed
    """
    data = data or {}
    if "ai" in data:
        ai = data["ai"] or {}
        if not isinstance(ai, dict):
            raise ConfigurationError("'ai' section must be a mapping")
        section = ai.get("providers", {})
    else:
        section = data
    if not isinstance(section, dict):
        raise ConfigurationError("'ai.providers' section must be a mapping")

    entries = section.get("providers") or []
    if not isinstance(entries, list):
        raise ConfigurationError("'providers' must be a list")

    providers = tuple(_parse_provider(entry) for entry in entries)
    seen: set[str] = set()
    for provider in providers:
        if provider.provider_id in seen:
            logger.warning(f"Duplicate provider config, first entry wins: {provider.provider_id}")
        seen.add(provider.provider_id)

    defaults = AIProvidersConfig()
    return AIProvidersConfig(
        providers=providers,
        default_text_provider=_as_str(section.get("default_text_provider"))
        or defaults.default_text_provider,
        default_image_provider=_as_str(section.get("default_image_provider"))
        or defaults.default_image_provider,
        enable_fallback=_as_bool(section.get("enable_fallback"), "enable_fallback", True),
    )


def load_providers_config(config_path: Path | str | None = None) -> AIProvidersConfig:
    """Load provider configuration from YAML.

    Resolution order for the path: explicit argument, ``AI_PROVIDERS_CONFIG``
    environment variable, then ``config/ai_providers.yaml``.

    Args:
        config_path: Path to config file (uses default if None)

    Returns:
        Parsed configuration; defaults when the file does not exist

    Raises:
        ConfigurationError: If the file cannot be parsed or holds invalid values
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)

    if not path.exists():
        logger.warning(f"AI providers config not found: {path}, using defaults")
        return AIProvidersConfig()

    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse AI providers config {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"AI providers config {path} must contain a mapping")

    config = parse_providers_config(raw)
    logger.info(f"Loaded {len(config.providers)} AI provider configs from {path}")
    return config
