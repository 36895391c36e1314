"""Tests for src/providers/openai_chat.py - OpenAI text adapter."""

import asyncio

import httpx
import pytest

from src.config.providers import ProviderConfig
from src.providers.base import ChatMessage, TextRequest
from src.providers.openai_chat import API_ENDPOINT, OpenAITextProvider

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def config():
    return ProviderConfig(
        provider_id="openai",
        api_key="sk-test",
        max_retries=0,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def provider(config, mock_client):
    return OpenAITextProvider(config, client=mock_client)


@pytest.fixture
def completion_body():
    return {
        "choices": [
            {"message": {"role": "assistant", "content": "  Which Pizza Are You?  "}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


# ============================================================================
# AVAILABILITY
# ============================================================================


class TestAvailability:
    """Tests for the local credential check."""

    @pytest.mark.asyncio
    async def test_available_with_key(self, provider, mock_client):
        assert await provider.is_available() is True
        assert mock_client.headers["Authorization"] == "Bearer sk-test"
        mock_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unavailable_without_key(self, mock_client):
        provider = OpenAITextProvider(ProviderConfig(provider_id="openai", api_key="  "), client=mock_client)

        assert await provider.is_available() is False
        assert "Authorization" not in mock_client.headers

    @pytest.mark.asyncio
    async def test_unavailable_when_disabled(self, mock_client):
        config = ProviderConfig(provider_id="openai", api_key="sk-test", enabled=False)
        provider = OpenAITextProvider(config, client=mock_client)

        assert await provider.is_available() is False
        assert provider.availability_hint() is False

    @pytest.mark.asyncio
    async def test_concurrent_checks_attach_header_once(self, provider, mock_client):
        results = await asyncio.gather(*(provider.is_available() for _ in range(5)))

        assert all(results)
        assert mock_client.headers.get_list("Authorization") == ["Bearer sk-test"]


# ============================================================================
# PAYLOAD
# ============================================================================


class TestPayload:
    """Tests for request body construction."""

    def test_payload_omits_unset_fields(self, provider):
        payload = provider.build_payload([ChatMessage.user("hi")], TextRequest(prompt="hi"))

        assert payload == {
            "model": "gpt-4o-mini",
            "messages": [{"role": "user", "content": "hi"}],
            "max_tokens": 500,
            "temperature": 0.8,
        }

    def test_payload_includes_set_sampling_fields(self, provider):
        request = TextRequest(prompt="hi", top_p=0.9, stop=["\n"], model="gpt-4o")
        payload = provider.build_payload([ChatMessage.user("hi")], request)

        assert payload["model"] == "gpt-4o"
        assert payload["top_p"] == 0.9
        assert payload["stop"] == ["\n"]
        assert "presence_penalty" not in payload

    def test_config_default_model(self, mock_client):
        config = ProviderConfig(provider_id="openai", api_key="k", default_model="gpt-4")
        provider = OpenAITextProvider(config, client=mock_client)

        assert provider.resolve_model(TextRequest()) == "gpt-4"


# ============================================================================
# GENERATION
# ============================================================================


class TestGenerate:
    """Tests for generate / generate_chat."""

    @pytest.mark.asyncio
    async def test_success(self, provider, mock_client, make_response, completion_body):
        mock_client.post.return_value = make_response(200, json=completion_body)

        response = await provider.generate(TextRequest(prompt="title please", system_message="be fun"))

        assert response.is_success
        assert response.text == "Which Pizza Are You?"
        assert response.tokens_used == 17
        assert response.finish_reason == "stop"
        assert response.provider_name == "OpenAI"
        url = mock_client.post.await_args.args[0]
        body = mock_client.post.await_args.kwargs["json"]
        assert url == API_ENDPOINT
        assert [m["role"] for m in body["messages"]] == ["system", "user"]

    @pytest.mark.asyncio
    async def test_missing_content_is_empty_success(self, provider, mock_client, make_response):
        mock_client.post.return_value = make_response(200, json={"choices": [{"message": {}}]})

        response = await provider.generate(TextRequest(prompt="x"))

        assert response.is_success
        assert response.text == ""
        assert response.tokens_used == 0

    @pytest.mark.asyncio
    async def test_http_error_is_failure_with_status(self, provider, mock_client, make_response):
        mock_client.post.return_value = make_response(429, text="rate limited")

        response = await provider.generate(TextRequest(prompt="x"))

        assert not response.is_success
        assert response.status_code == 429
        assert response.error_type == "BackendSemanticError"

    @pytest.mark.asyncio
    async def test_network_error_is_failure(self, provider, mock_client):
        mock_client.post.side_effect = httpx.ConnectError("refused")

        response = await provider.generate(TextRequest(prompt="x"))

        assert not response.is_success
        assert response.error_type == "TransportError"

    @pytest.mark.asyncio
    async def test_malformed_body_is_failure(self, provider, mock_client, make_response):
        mock_client.post.return_value = make_response(200, text="not json")

        response = await provider.generate(TextRequest(prompt="x"))

        assert response.error_type == "ProtocolError"

    @pytest.mark.asyncio
    async def test_missing_key_fails_without_network(self, mock_client):
        provider = OpenAITextProvider(ProviderConfig(provider_id="openai"), client=mock_client)

        response = await provider.generate(TextRequest(prompt="x"))

        assert response.error_type == "ConfigurationError"
        mock_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, provider, mock_client):
        started = asyncio.Event()

        async def hang(*args, **kwargs):
            started.set()
            await asyncio.sleep(60)

        mock_client.post.side_effect = hang

        task = asyncio.create_task(provider.generate(TextRequest(prompt="x")))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestCatalog:
    """Tests for list_models and capabilities."""

    def test_list_models(self, provider):
        models = provider.list_models()

        assert [m.model_id for m in models][:2] == ["gpt-4o", "gpt-4o-mini"]
        assert all(m.provider_id == "openai" for m in models)
        assert provider.supported_models == [m.model_id for m in models]

    def test_capabilities(self, provider):
        caps = provider.capabilities()

        assert caps.supports_chat is True
        assert caps.max_context_tokens == 128000

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self, provider, mock_client):
        await provider.aclose()

        mock_client.aclose.assert_awaited_once()
