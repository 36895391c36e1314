"""
OpenAI Text Provider.

Token-authenticated adapter for the OpenAI chat completions API.

Usage:
    from src.providers.openai_chat import OpenAITextProvider

    provider = OpenAITextProvider(config.config_for("openai"))
    registry.register(provider)

    response = await provider.generate(TextRequest(prompt="Write a quiz title"))
    if response.is_success:
        print(response.text)
"""

import logging
import time

import httpx

from src.config.providers import ProviderConfig
from src.exceptions import ProviderError
from src.providers.base import (
    AIModel,
    ChatMessage,
    ModelPricing,
    ProviderCapabilities,
    ProviderIdentity,
    ProviderKind,
    TextProvider,
    TextRequest,
    TextResponse,
)
from src.providers.schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessagePayload,
)
from src.providers.token_auth import TokenAuthProvider
from src.providers.transport import check_status, decode, post_json

logger = logging.getLogger(__name__)

API_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"


class OpenAITextProvider(TokenAuthProvider, TextProvider):
    """OpenAI chat completions (GPT-4o, GPT-4, GPT-3.5)."""

    IDENTITY = ProviderIdentity(id="openai", display_name="OpenAI", kind=ProviderKind.TEXT)

    # Advertised catalog; priority orders the models listing (higher first)
    MODEL_CONFIGS = {
        "gpt-4o": {
            "name": "GPT-4o",
            "priority": 100,
            "max_tokens": 128000,
            "cost_input": 2.50,  # per 1M tokens
            "cost_output": 10.00,
        },
        "gpt-4o-mini": {
            "name": "GPT-4o mini",
            "priority": 90,
            "max_tokens": 128000,
            "cost_input": 0.15,
            "cost_output": 0.60,
        },
        "gpt-4-turbo": {
            "name": "GPT-4 Turbo",
            "priority": 80,
            "max_tokens": 128000,
            "cost_input": 10.00,
            "cost_output": 30.00,
        },
        "gpt-4": {
            "name": "GPT-4",
            "priority": 70,
            "max_tokens": 8192,
            "cost_input": 30.00,
            "cost_output": 60.00,
        },
        "gpt-3.5-turbo": {
            "name": "GPT-3.5 Turbo",
            "priority": 60,
            "max_tokens": 16385,
            "cost_input": 0.50,
            "cost_output": 1.50,
        },
    }

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient | None = None,
        endpoint: str = API_ENDPOINT,
    ) -> None:
        super().__init__(config, client)
        self._endpoint = endpoint

    @property
    def identity(self) -> ProviderIdentity:
        return self.IDENTITY

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_streaming=True,
            supports_chat=True,
            supports_vision=True,
            supports_function_calling=True,
            max_context_tokens=128000,  # gpt-4o context window
            supported_languages=("en", "es", "fr", "de", "it", "pt", "ja", "ko", "zh"),
        )

    def list_models(self) -> list[AIModel]:
        return [
            AIModel(
                model_id=model_id,
                display_name=model_info["name"],
                provider_id=self.id,
                provider_name=self.display_name,
                kind=ProviderKind.TEXT,
                priority=model_info["priority"],
                max_tokens=model_info["max_tokens"],
                pricing=ModelPricing(
                    input_cost_per_1k_tokens=model_info["cost_input"] / 1000,
                    output_cost_per_1k_tokens=model_info["cost_output"] / 1000,
                ),
            )
            for model_id, model_info in self.MODEL_CONFIGS.items()
        ]

    def resolve_model(self, request: TextRequest) -> str:
        """Request override, then configured default, then the built-in default."""
        return request.model or self._config.default_model or DEFAULT_MODEL

    def build_payload(self, messages: list[ChatMessage], request: TextRequest) -> dict:
        """Build the chat completions body, omitting unset optional fields."""
        body = ChatCompletionRequest(
            model=self.resolve_model(request),
            messages=[
                ChatMessagePayload(role=m.role, content=m.content, name=m.name) for m in messages
            ],
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            top_p=request.top_p,
            frequency_penalty=request.frequency_penalty,
            presence_penalty=request.presence_penalty,
            stop=request.stop,
        )
        return body.model_dump(exclude_none=True)

    async def generate_chat(
        self,
        messages: list[ChatMessage],
        request: TextRequest,
    ) -> TextResponse:
        """Generate a chat completion.

        Args:
            messages: Conversation, oldest first
            request: Sampling parameters and optional model override

        Returns:
            TextResponse with the first choice's content. A success status
            with no content yields an empty-string success.
        """
        model = self.resolve_model(request)
        start_time = time.time()

        try:
            self._require_credentials()
            payload = self.build_payload(messages, request)

            logger.debug(f"Calling OpenAI API with model: {model}", extra={"provider_id": self.id})
            response = await post_json(
                self._client,
                self._endpoint,
                payload,
                provider=self.display_name,
                config=self._config,
            )
            check_status(response, provider=self.display_name)
            body = decode(response, ChatCompletionResponse, provider=self.display_name)
        except ProviderError as e:
            logger.error(f"Error calling OpenAI API: {e}", extra={"provider_id": self.id})
            return TextResponse.failure(e, self.display_name, model)
        except Exception as e:
            logger.exception(f"Unexpected error calling OpenAI API: {e}", extra={"provider_id": self.id})
            return TextResponse.failure(e, self.display_name, model)

        choice = body.choices[0] if body.choices else None
        content = choice.message.content if choice and choice.message else None

        return TextResponse(
            text=(content or "").strip(),
            model=model,
            provider_name=self.display_name,
            tokens_used=body.usage.total_tokens if body.usage else 0,
            finish_reason=choice.finish_reason if choice else None,
            metadata={"latency_ms": (time.time() - start_time) * 1000},
        )
