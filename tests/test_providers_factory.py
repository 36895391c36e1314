"""Tests for src/providers/factory.py - Registry bootstrap."""

import pytest

from src.config.providers import AIProvidersConfig, ProviderConfig
from src.providers.base import ProviderKind
from src.providers.factory import build_registry


@pytest.fixture
def config():
    return AIProvidersConfig(
        providers=(
            ProviderConfig(provider_id="openai", api_key="sk-shared", priority=10),
            ProviderConfig(provider_id="swarmui", priority=5, base_url="http://gpu:7801"),
        )
    )


class TestBuildRegistry:
    """Tests for build_registry."""

    @pytest.mark.asyncio
    async def test_registers_all_adapters(self, config):
        registry = build_registry(config)
        try:
            assert [p.id for p in registry.list_all(ProviderKind.TEXT)] == ["openai"]
            assert [p.id for p in registry.list_all(ProviderKind.IMAGE)] == ["openai-image", "swarmui"]
            assert registry.get("swarmui").base_url == "http://gpu:7801"
        finally:
            await registry.aclose()

    @pytest.mark.asyncio
    async def test_image_adapter_inherits_openai_key(self, config):
        registry = build_registry(config)
        try:
            image = registry.get("openai-image")
            assert image.config.provider_id == "openai-image"
            assert image.config.api_key == "sk-shared"
            assert await image.is_available() is True
        finally:
            await registry.aclose()

    @pytest.mark.asyncio
    async def test_use_mock_adds_mock_providers(self, config):
        registry = build_registry(config, use_mock=True)
        try:
            assert registry.get("mock", ProviderKind.TEXT) is not None
            assert registry.get("mock-image", ProviderKind.IMAGE) is not None
        finally:
            await registry.aclose()

    @pytest.mark.asyncio
    async def test_loads_config_when_omitted(self, tmp_path, monkeypatch):
        path = tmp_path / "ai.yaml"
        path.write_text("providers:\n  - provider_id: openai\n    priority: 7\n")
        monkeypatch.setenv("AI_PROVIDERS_CONFIG", str(path))

        registry = build_registry()
        try:
            assert registry.priority("openai") == 7
        finally:
            await registry.aclose()
