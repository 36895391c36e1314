"""
AI Provider Abstraction Layer.

A stable interface over text and image generation backends, so quiz
generation code never branches on which backend serves a request.

Architecture:
    Application Layer
         ↓
    ProviderRegistry (selection and failover)
         ↓
    TextProvider / ImageProvider contract (this package)
         ↓
    Adapters: OpenAI (token auth), SwarmUI (session auth), mocks
         ↓
    Backend HTTP APIs

Usage:
    from src.providers import TextRequest, build_registry

    registry = build_registry()
    provider = await registry.require_text()
    response = await provider.generate(TextRequest(prompt="Write a quiz title"))
"""

from src.providers.base import (
    AIModel,
    AIProvider,
    ChatMessage,
    GeneratedImage,
    ImageProvider,
    ImageRequest,
    ImageResponse,
    ModelPricing,
    ProviderCapabilities,
    ProviderIdentity,
    ProviderKind,
    TextProvider,
    TextRequest,
    TextResponse,
)
from src.providers.factory import build_registry
from src.providers.registry import ModelsCatalog, ProviderInfo, ProviderRegistry

__all__ = [
    "AIModel",
    "AIProvider",
    "ChatMessage",
    "GeneratedImage",
    "ImageProvider",
    "ImageRequest",
    "ImageResponse",
    "ModelPricing",
    "ModelsCatalog",
    "ProviderCapabilities",
    "ProviderIdentity",
    "ProviderInfo",
    "ProviderKind",
    "ProviderRegistry",
    "TextProvider",
    "TextRequest",
    "TextResponse",
    "build_registry",
]
