"""
Pytest configuration and shared fixtures.

Adapters take an injected ``httpx.AsyncClient``; these fixtures provide an
``AsyncMock`` stand-in with real header storage plus a factory for real
``httpx.Response`` objects, so no test touches the network.
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from src.config.providers import AIProvidersConfig, ProviderConfig


@pytest.fixture
def mock_client():
    """An AsyncMock HTTP client whose ``post`` is configured per test."""
    client = AsyncMock(spec=httpx.AsyncClient)
    client.headers = httpx.Headers()
    return client


@pytest.fixture
def make_response():
    """Factory for ``httpx.Response`` objects bound to a dummy request."""

    def _make(status_code=200, json=None, text=None, url="http://test/API"):
        request = httpx.Request("POST", url)
        if json is not None:
            return httpx.Response(status_code, json=json, request=request)
        return httpx.Response(status_code, text=text or "", request=request)

    return _make


@pytest.fixture
def fast_config():
    """Factory for provider configs with zero retry backoff."""

    def _make(provider_id="test", **overrides):
        overrides.setdefault("retry_backoff_seconds", 0)
        return ProviderConfig(provider_id=provider_id, **overrides)

    return _make


@pytest.fixture
def providers_config():
    """Config with explicit priorities for the mock ids used in registry tests."""
    return AIProvidersConfig(
        providers=(
            ProviderConfig(provider_id="alpha", priority=10),
            ProviderConfig(provider_id="beta", priority=5),
        ),
        default_text_provider="alpha",
        default_image_provider="alpha",
        enable_fallback=True,
    )
