"""
Mock Providers for Testing.

Deterministic text and image providers that never touch the network.
Useful for local development without API keys and for exercising the
registry's selection and failover in tests.

Usage:
    from src.providers.mock import MockImageProvider, MockTextProvider

    registry.register(MockTextProvider())
    registry.register(MockImageProvider(provider_id="mock-image", available=False))

    provider = await registry.select_text("mock")
    response = await provider.generate(TextRequest(prompt="Create a quiz"))
"""

import asyncio
import random

from src.providers.base import (
    AIModel,
    ChatMessage,
    GeneratedImage,
    ImageProvider,
    ImageRequest,
    ImageResponse,
    ProgressCallback,
    ProviderCapabilities,
    ProviderIdentity,
    ProviderKind,
    TextProvider,
    TextRequest,
    TextResponse,
    report_progress,
)


class SimulatedFailure(RuntimeError):
    """Raised internally by mock providers when a failure is rolled."""


class _MockBehavior:
    """Availability, latency and failure knobs shared by both mocks."""

    def _init_behavior(
        self,
        provider_id: str,
        display_name: str,
        kind: ProviderKind,
        available: bool,
        latency_ms: float,
        failure_rate: float,
        model_id: str,
    ) -> None:
        self._identity = ProviderIdentity(id=provider_id, display_name=display_name, kind=kind)
        self._available = available
        self._latency_ms = latency_ms
        self._failure_rate = failure_rate
        self._model_id = model_id
        self.call_count = 0
        self.availability_checks = 0

    @property
    def identity(self) -> ProviderIdentity:
        return self._identity

    def set_available(self, available: bool) -> None:
        self._available = available

    def availability_hint(self) -> bool:
        return self._available

    async def is_available(self) -> bool:
        self.availability_checks += 1
        return self._available

    async def _simulate_call(self) -> None:
        self.call_count += 1
        if self._latency_ms > 0:
            await asyncio.sleep(self._latency_ms / 1000)
        if self._failure_rate > 0 and random.random() < self._failure_rate:
            raise SimulatedFailure("Simulated API failure")


class MockTextProvider(_MockBehavior, TextProvider):
    """Mock text provider returning canned quiz content."""

    def __init__(
        self,
        provider_id: str = "mock",
        display_name: str = "Mock Text",
        available: bool = True,
        latency_ms: float = 0.0,
        failure_rate: float = 0.0,
        model_id: str = "mock-text-v1",
    ):
        """Initialize mock text provider.

        Args:
            provider_id: Registry id of this mock
            display_name: Human-readable name
            available: What ``is_available()`` reports
            latency_ms: Simulated response latency
            failure_rate: Probability of a simulated failure (0-1)
            model_id: Model reported in responses
        """
        self._init_behavior(
            provider_id,
            display_name,
            ProviderKind.TEXT,
            available,
            latency_ms,
            failure_rate,
            model_id,
        )

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_chat=True,
            max_context_tokens=4096,
            supported_languages=("en",),
        )

    def list_models(self) -> list[AIModel]:
        return [
            AIModel(
                model_id=self._model_id,
                display_name="Mock Text Model",
                provider_id=self.id,
                provider_name=self.display_name,
                kind=ProviderKind.TEXT,
                priority=10,
                max_tokens=4096,
            )
        ]

    async def generate_chat(
        self,
        messages: list[ChatMessage],
        request: TextRequest,
    ) -> TextResponse:
        model = request.model or self._model_id
        try:
            await self._simulate_call()
        except SimulatedFailure as e:
            return TextResponse.failure(e, self.display_name, model)

        content = self._mock_response(messages)
        prompt_words = sum(len(m.content.split()) for m in messages)
        return TextResponse(
            text=content,
            model=model,
            provider_name=self.display_name,
            tokens_used=prompt_words + len(content.split()),
            finish_reason="stop",
            metadata={"mock": True, "call_count": self.call_count},
        )

    def _mock_response(self, messages: list[ChatMessage]) -> str:
        last_message = messages[-1].content.lower() if messages else ""

        if "question" in last_message:
            return "Which snack best matches your weekend energy? A) Popcorn B) Nachos C) Sushi D) Fruit salad"
        elif "result" in last_message or "personality" in last_message:
            return "You are a Spontaneous Adventurer: curious, upbeat and always ready for the next plan."
        elif "title" in last_message or "topic" in last_message:
            return "Which Breakfast Food Are You?"
        else:
            return "Mock response generated successfully."


class MockImageProvider(_MockBehavior, ImageProvider):
    """Mock image provider returning placeholder image URLs."""

    PLACEHOLDER_URL = "https://placehold.co/{width}x{height}/png"

    def __init__(
        self,
        provider_id: str = "mock-image",
        display_name: str = "Mock Image",
        available: bool = True,
        latency_ms: float = 0.0,
        failure_rate: float = 0.0,
        model_id: str = "mock-image-v1",
    ):
        self._init_behavior(
            provider_id,
            display_name,
            ProviderKind.IMAGE,
            available,
            latency_ms,
            failure_rate,
            model_id,
        )

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            max_image_size=1024,
            supported_formats=("png",),
            supported_sizes=("512x512", "1024x1024"),
        )

    def list_models(self) -> list[AIModel]:
        return [
            AIModel(
                model_id=self._model_id,
                display_name="Mock Image Model",
                provider_id=self.id,
                provider_name=self.display_name,
                kind=ProviderKind.IMAGE,
                priority=10,
                max_image_size=1024,
            )
        ]

    async def generate(
        self,
        request: ImageRequest,
        progress: ProgressCallback | None = None,
    ) -> ImageResponse:
        model = request.model or self._model_id
        report_progress(progress, 10, "Preparing mock image...")
        try:
            await self._simulate_call()
        except SimulatedFailure as e:
            return ImageResponse.failure(e, self.display_name, model)

        width, height = request.dimensions()
        images = [
            GeneratedImage(
                url=self.PLACEHOLDER_URL.format(width=width, height=height),
                width=width,
                height=height,
                seed=request.seed,
            )
            for _ in range(max(1, request.count))
        ]
        report_progress(progress, 100, "Mock image complete!")
        return ImageResponse(
            images=images,
            model=model,
            provider_name=self.display_name,
            metadata={"mock": True, "call_count": self.call_count},
        )
