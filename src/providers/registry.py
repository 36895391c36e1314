"""
AI Provider Registry.

Holds every registered adapter by kind and picks the best available one
per call: the caller's preferred id, then the configured default, then
(when fallback is enabled) every adapter of that kind by configured
priority. Selection checks availability synchronously per call; there is no
background health monitoring.

Usage:
    from src.providers.factory import build_registry

    registry = build_registry()

    provider = await registry.select_text()          # None if nothing is available
    provider = await registry.require_image("swarmui")  # raises ProviderNotFoundError

    catalog = registry.all_models()
    for info in await registry.provider_info():
        print(info.provider_name, info.is_available)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from src.config.providers import AIProvidersConfig, ProviderConfig
from src.exceptions import ProviderNotFoundError
from src.logging_config import provider_context
from src.providers.base import (
    AIModel,
    AIProvider,
    ImageProvider,
    ProviderKind,
    TextProvider,
)

logger = logging.getLogger(__name__)


@dataclass
class ModelsCatalog:
    """Every advertised model, grouped by kind, highest priority first."""

    text_models: list[AIModel] = field(default_factory=list)
    image_models: list[AIModel] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.text_models) + len(self.image_models)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text_models": [m.to_dict() for m in self.text_models],
            "image_models": [m.to_dict() for m in self.image_models],
            "total_count": self.total_count,
        }


@dataclass
class ProviderInfo:
    """Summary row for one registered provider."""

    provider_id: str
    provider_name: str
    kind: ProviderKind
    is_available: bool
    model_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "provider_name": self.provider_name,
            "kind": self.kind.value,
            "is_available": self.is_available,
            "model_count": self.model_count,
        }


def _sorted_models(models: list[AIModel]) -> list[AIModel]:
    return sorted(models, key=lambda m: m.priority, reverse=True)


class ProviderRegistry:
    """Registry of text and image providers.

    One instance is built at process start and passed to whatever needs
    it. Registration happens before concurrent use; afterwards the
    registry is only read.
    """

    def __init__(self, config: AIProvidersConfig | None = None):
        """Initialize the registry.

        Args:
            config: Provider configuration; defaults apply when omitted
        """
        self._config = config or AIProvidersConfig()
        self._text: dict[str, TextProvider] = {}
        self._image: dict[str, ImageProvider] = {}

    @property
    def config(self) -> AIProvidersConfig:
        return self._config

    def _table(self, kind: ProviderKind) -> dict[str, Any]:
        return self._text if kind == ProviderKind.TEXT else self._image

    def register(self, provider: AIProvider) -> None:
        """Register an adapter under its id.

        A second adapter with the same (kind, id) replaces the first.

        Raises:
            TypeError: If the adapter is neither a text nor an image provider
        """
        if isinstance(provider, TextProvider):
            table = self._text
        elif isinstance(provider, ImageProvider):
            table = self._image
        else:
            raise TypeError(f"Unsupported provider type: {type(provider).__name__}")

        extra = provider_context(provider)
        if provider.id in table:
            logger.warning(f"Replacing existing {provider.kind.value} provider: {provider.id}", extra=extra)

        table[provider.id] = provider
        logger.info(
            f"Registered {provider.kind.value} provider: {provider.display_name} ({provider.id})",
            extra=extra,
        )

    # Selection

    async def select_text(self, preferred_id: str | None = None) -> TextProvider | None:
        """Return the best available text provider, or None."""
        return await self._select(ProviderKind.TEXT, preferred_id)

    async def select_image(self, preferred_id: str | None = None) -> ImageProvider | None:
        """Return the best available image provider, or None."""
        return await self._select(ProviderKind.IMAGE, preferred_id)

    async def require_text(self, preferred_id: str | None = None) -> TextProvider:
        """Like ``select_text`` but raises when nothing is available.

        Raises:
            ProviderNotFoundError: If no text provider is available
        """
        provider = await self.select_text(preferred_id)
        if provider is None:
            raise ProviderNotFoundError(
                "No available text provider found", kind=ProviderKind.TEXT.value, preferred_id=preferred_id
            )
        return provider

    async def require_image(self, preferred_id: str | None = None) -> ImageProvider:
        """Like ``select_image`` but raises when nothing is available.

        Raises:
            ProviderNotFoundError: If no image provider is available
        """
        provider = await self.select_image(preferred_id)
        if provider is None:
            raise ProviderNotFoundError(
                "No available image provider found", kind=ProviderKind.IMAGE.value, preferred_id=preferred_id
            )
        return provider

    async def _select(self, kind: ProviderKind, preferred_id: str | None) -> Any:
        table = self._table(kind)
        default_id = (
            self._config.default_text_provider
            if kind == ProviderKind.TEXT
            else self._config.default_image_provider
        )
        unavailable: set[str] = set()

        for candidate_id in (preferred_id, default_id):
            if not candidate_id or candidate_id in unavailable:
                continue
            provider = table.get(candidate_id)
            if provider is None:
                continue
            if await self._check_available(provider):
                return provider
            unavailable.add(candidate_id)

        if self._config.enable_fallback:
            # Stable sort: equal priorities keep registration order.
            ordered = sorted(table.values(), key=lambda p: self.priority(p.id), reverse=True)
            for provider in ordered:
                if provider.id in unavailable:
                    continue
                if await self._check_available(provider):
                    logger.warning(
                        f"Using fallback {kind.value} provider: {provider.display_name}",
                        extra=provider_context(provider),
                    )
                    return provider
                unavailable.add(provider.id)

        logger.error(f"No available {kind.value} providers found", extra={"provider_kind": kind.value})
        return None

    async def _check_available(self, provider: AIProvider) -> bool:
        try:
            return await provider.is_available()
        except Exception as e:
            logger.error(
                f"Availability check failed for {provider.id}: {e}",
                extra=provider_context(provider),
            )
            return False

    # Accessors

    def list_all(self, kind: ProviderKind) -> list[AIProvider]:
        """All registered adapters of a kind, in registration order."""
        return list(self._table(kind).values())

    def get(self, provider_id: str, kind: ProviderKind | None = None) -> AIProvider | None:
        """Look up a registered adapter by id without checking availability."""
        kinds = [kind] if kind else [ProviderKind.TEXT, ProviderKind.IMAGE]
        for k in kinds:
            provider = self._table(k).get(provider_id)
            if provider is not None:
                return provider
        return None

    def provider_config(self, provider_id: str) -> ProviderConfig | None:
        return self._config.get(provider_id)

    def priority(self, provider_id: str) -> int:
        """Configured priority, 0 when the provider has no config entry."""
        config = self._config.get(provider_id)
        return config.priority if config else 0

    def is_enabled(self, provider_id: str) -> bool:
        """Configured enabled flag; unconfigured providers run with defaults."""
        return self._config.config_for(provider_id).enabled

    # Model catalog

    def all_models(self) -> ModelsCatalog:
        catalog = ModelsCatalog(
            text_models=self.models_by_kind(ProviderKind.TEXT),
            image_models=self.models_by_kind(ProviderKind.IMAGE),
        )
        logger.info(
            f"Retrieved {catalog.total_count} total AI models "
            f"({len(catalog.text_models)} text, {len(catalog.image_models)} image)"
        )
        return catalog

    def models_by_kind(self, kind: ProviderKind) -> list[AIModel]:
        models: list[AIModel] = []
        for provider in self._table(kind).values():
            models.extend(provider.list_models())
        return _sorted_models(models)

    def provider_models(self, provider_id: str) -> list[AIModel]:
        """Models advertised by one provider; empty when the id is unknown."""
        provider = self.get(provider_id)
        if provider is None:
            return []
        return _sorted_models(provider.list_models())

    async def provider_info(self, live: bool = False) -> list[ProviderInfo]:
        """Summarize every registered provider.

        Args:
            live: Check each provider with ``is_available()`` (concurrently).
                Checks can have side effects such as creating a session.
                Otherwise the side-effect-free ``availability_hint()`` is used.

        Returns:
            Available providers first, then by display name
        """
        providers: list[AIProvider] = [*self._text.values(), *self._image.values()]

        if live:
            available = await asyncio.gather(*(self._check_available(p) for p in providers))
        else:
            available = [p.availability_hint() for p in providers]

        infos = [
            ProviderInfo(
                provider_id=provider.id,
                provider_name=provider.display_name,
                kind=provider.kind,
                is_available=bool(is_available),
                model_count=len(provider.list_models()),
            )
            for provider, is_available in zip(providers, available)
        ]
        return sorted(infos, key=lambda info: (not info.is_available, info.provider_name))

    async def aclose(self) -> None:
        """Close every registered adapter's network resources."""
        seen: set[int] = set()
        for provider in [*self._text.values(), *self._image.values()]:
            if id(provider) in seen:
                continue
            seen.add(id(provider))
            await provider.aclose()
