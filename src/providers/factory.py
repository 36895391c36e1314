"""
Registry bootstrap.

Builds the one ``ProviderRegistry`` a process uses and registers every
adapter against its configuration.
"""

import dataclasses
import logging

from src.config.providers import AIProvidersConfig, load_providers_config
from src.providers.base import ProviderKind
from src.providers.mock import MockImageProvider, MockTextProvider
from src.providers.openai_chat import OpenAITextProvider
from src.providers.openai_image import OpenAIImageProvider
from src.providers.registry import ProviderRegistry
from src.providers.swarmui import SwarmUIImageProvider

logger = logging.getLogger(__name__)


def build_registry(
    config: AIProvidersConfig | None = None,
    *,
    use_mock: bool = False,
) -> ProviderRegistry:
    """Create a registry with all adapters registered.

    Args:
        config: Provider configuration; loaded from YAML when omitted
        use_mock: Also register the network-free mock providers

    Returns:
        The populated registry. Call ``await registry.aclose()`` at shutdown.
    """
    config = config or load_providers_config()
    registry = ProviderRegistry(config)

    registry.register(OpenAITextProvider(config.config_for("openai")))

    # The image adapter shares the OpenAI key unless it has its own entry.
    image_config = config.get("openai-image") or dataclasses.replace(
        config.config_for("openai"), provider_id="openai-image"
    )
    registry.register(OpenAIImageProvider(image_config))

    registry.register(SwarmUIImageProvider(config.config_for("swarmui")))

    if use_mock:
        registry.register(MockTextProvider())
        registry.register(MockImageProvider())

    logger.info(
        f"Provider registry ready: {len(registry.list_all(ProviderKind.TEXT))} text, "
        f"{len(registry.list_all(ProviderKind.IMAGE))} image"
    )
    return registry
