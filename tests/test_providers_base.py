"""Tests for src/providers/base.py - Provider contract and value types."""

import pytest

from src.exceptions import TransportError


class TestProviderCapabilities:
    """Tests for ProviderCapabilities dataclass."""

    def test_defaults(self):
        """Capabilities should default to nothing supported."""
        from src.providers.base import ProviderCapabilities

        caps = ProviderCapabilities()
        assert caps.supports_streaming is False
        assert caps.max_context_tokens == 0
        assert caps.supported_formats == ()
        assert dict(caps.extensions) == {}

    def test_extensions_are_read_only(self):
        """Backend-specific flags cannot be mutated after declaration."""
        from src.providers.base import ProviderCapabilities

        caps = ProviderCapabilities(extensions={"supports_seed": True})

        assert caps.get("supports_seed") is True
        assert caps.get("missing", "fallback") == "fallback"
        with pytest.raises(TypeError):
            caps.extensions["supports_seed"] = False

    def test_to_dict(self):
        from src.providers.base import ProviderCapabilities

        caps = ProviderCapabilities(max_image_size=2048, extensions={"supports_steps": True})
        data = caps.to_dict()

        assert data["max_image_size"] == 2048
        assert data["extensions"] == {"supports_steps": True}

    def test_to_dict_with_defaults(self):
        """Serializing capabilities with no extensions still works."""
        from src.providers.base import ProviderCapabilities

        data = ProviderCapabilities(supported_formats=("png",)).to_dict()

        assert data["extensions"] == {}
        assert data["supported_formats"] == ("png",)
        assert data["supports_streaming"] is False

    def test_adapter_capabilities_serialize(self):
        """Every shipped adapter's capabilities can be serialized."""
        from unittest.mock import AsyncMock

        from src.config.providers import ProviderConfig
        from src.providers.swarmui import SwarmUIImageProvider

        provider = SwarmUIImageProvider(ProviderConfig(provider_id="swarmui"), client=AsyncMock())

        assert provider.capabilities().to_dict()["extensions"]["supports_seed"] is True


class TestResponses:
    """Tests for TextResponse and ImageResponse."""

    def test_text_response_success(self):
        from src.providers.base import TextResponse

        response = TextResponse(text="", model="m", provider_name="P")
        assert response.is_success is True

    def test_text_failure_from_provider_error(self):
        from src.providers.base import TextResponse

        error = TransportError("OpenAI request timed out", provider="OpenAI", status_code=None)
        response = TextResponse.failure(error, "OpenAI", "gpt-4o-mini")

        assert response.is_success is False
        assert response.error == "OpenAI request timed out"
        assert response.error_type == "TransportError"
        assert response.model == "gpt-4o-mini"

    def test_image_failure_from_plain_exception(self):
        from src.providers.base import ImageResponse

        response = ImageResponse.failure(KeyError(), "SwarmUI")

        assert response.is_success is False
        assert response.error == "KeyError"
        assert response.status_code is None

    def test_to_dict_includes_is_success(self):
        from src.providers.base import ImageResponse

        assert ImageResponse(error="x").to_dict()["is_success"] is False


class TestImageRequest:
    """Tests for ImageRequest.dimensions."""

    def test_size_preset_overrides_width_height(self):
        from src.providers.base import ImageRequest

        assert ImageRequest(size="1792x1024").dimensions() == (1792, 1024)

    def test_malformed_size_falls_back(self):
        from src.providers.base import ImageRequest

        assert ImageRequest(width=512, height=768, size="large").dimensions() == (512, 768)


class TestReportProgress:
    """Tests for report_progress."""

    def test_none_callback_is_ignored(self):
        from src.providers.base import report_progress

        report_progress(None, 10, "ignored")

    def test_failing_callback_does_not_raise(self):
        from src.providers.base import report_progress

        def broken(percent, message):
            raise RuntimeError("ui went away")

        report_progress(broken, 50, "halfway")


class TestTextProviderGenerate:
    """Tests for TextProvider.generate message building."""

    @pytest.mark.asyncio
    async def test_generate_builds_system_and_user_messages(self):
        from src.providers.base import (
            ProviderCapabilities,
            ProviderIdentity,
            ProviderKind,
            TextProvider,
            TextRequest,
            TextResponse,
        )

        class EchoProvider(TextProvider):
            @property
            def identity(self):
                return ProviderIdentity("echo", "Echo", ProviderKind.TEXT)

            def capabilities(self):
                return ProviderCapabilities()

            async def is_available(self):
                return True

            def list_models(self):
                return []

            async def generate_chat(self, messages, request):
                self.seen = messages
                return TextResponse(text=messages[-1].content)

        provider = EchoProvider()
        response = await provider.generate(TextRequest(prompt="hi", system_message="be brief"))

        assert [m.role for m in provider.seen] == ["system", "user"]
        assert response.text == "hi"
        assert provider.id == "echo"
        assert provider.availability_hint() is False

    @pytest.mark.asyncio
    async def test_generate_without_system_message(self):
        from src.providers.mock import MockTextProvider
        from src.providers.base import TextRequest

        provider = MockTextProvider()
        response = await provider.generate(TextRequest(prompt="Give me a quiz title"))

        assert response.is_success
        assert response.text == "Which Breakfast Food Are You?"

    def test_abstract_provider_cannot_be_instantiated(self):
        from src.providers.base import ImageProvider

        with pytest.raises(TypeError):
            ImageProvider()
