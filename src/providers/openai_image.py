"""
OpenAI Image Provider.

Token-authenticated adapter for the OpenAI image generations API
(DALL-E 2 and DALL-E 3).
"""

import logging

import httpx

from src.config.providers import ProviderConfig
from src.exceptions import ProviderError
from src.providers.base import (
    AIModel,
    GeneratedImage,
    ImageProvider,
    ImageRequest,
    ImageResponse,
    ModelPricing,
    ProgressCallback,
    ProviderCapabilities,
    ProviderIdentity,
    ProviderKind,
    report_progress,
)
from src.providers.schemas import ImageGenerationRequest, ImageGenerationResponse
from src.providers.token_auth import TokenAuthProvider
from src.providers.transport import check_status, decode, post_json

logger = logging.getLogger(__name__)

API_ENDPOINT = "https://api.openai.com/v1/images/generations"
DEFAULT_MODEL = "dall-e-3"

SUPPORTED_SIZES = ("1024x1024", "1792x1024", "1024x1792", "256x256", "512x512")


class OpenAIImageProvider(TokenAuthProvider, ImageProvider):
    """OpenAI DALL-E image generation."""

    IDENTITY = ProviderIdentity(
        id="openai-image", display_name="OpenAI DALL-E", kind=ProviderKind.IMAGE
    )

    MODEL_CONFIGS = {
        "dall-e-3": {"name": "DALL-E 3", "priority": 100, "max_images": 1, "cost": 0.040},
        "dall-e-2": {"name": "DALL-E 2", "priority": 50, "max_images": 10, "cost": 0.020},
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
            supports_streaming=False,
            max_image_size=1792,
            supported_formats=("png", "url"),
            supported_sizes=SUPPORTED_SIZES,
            extensions={
                "supports_hd_quality": True,
                "supports_styles": True,  # vivid, natural
                "max_images_per_request": 10,
            },
        )

    def list_models(self) -> list[AIModel]:
        return [
            AIModel(
                model_id=model_id,
                display_name=model_info["name"],
                provider_id=self.id,
                provider_name=self.display_name,
                kind=ProviderKind.IMAGE,
                priority=model_info["priority"],
                max_image_size=1792,
                pricing=ModelPricing(image_cost_per_generation=model_info["cost"]),
            )
            for model_id, model_info in self.MODEL_CONFIGS.items()
        ]

    def resolve_model(self, request: ImageRequest) -> str:
        return request.model or self._config.default_model or DEFAULT_MODEL

    def build_payload(self, request: ImageRequest) -> dict:
        model = self.resolve_model(request)
        max_images = self.MODEL_CONFIGS.get(model, {}).get("max_images", 10)
        width, height = request.dimensions()
        body = ImageGenerationRequest(
            model=model,
            prompt=request.prompt,
            n=max(1, min(request.count, max_images)),
            size=request.size or f"{width}x{height}",
            quality=request.quality or "standard",
            style=request.style or "vivid",
        )
        return body.model_dump()

    async def generate(
        self,
        request: ImageRequest,
        progress: ProgressCallback | None = None,
    ) -> ImageResponse:
        model = self.resolve_model(request)
        width, height = request.dimensions()

        try:
            self._require_credentials()
            report_progress(progress, 10, "Preparing image generation request...")
            payload = self.build_payload(request)

            report_progress(progress, 30, "Calling OpenAI DALL-E API...")
            logger.debug(f"Calling OpenAI DALL-E with model: {model}", extra={"provider_id": self.id})
            response = await post_json(
                self._client,
                self._endpoint,
                payload,
                provider=self.display_name,
                config=self._config,
            )
            check_status(response, provider=self.display_name)
            body = decode(response, ImageGenerationResponse, provider=self.display_name)
        except ProviderError as e:
            logger.error(f"Error calling OpenAI DALL-E API: {e}", extra={"provider_id": self.id})
            return ImageResponse.failure(e, self.display_name, model)
        except Exception as e:
            logger.exception(
                f"Unexpected error calling OpenAI DALL-E API: {e}", extra={"provider_id": self.id}
            )
            return ImageResponse.failure(e, self.display_name, model)

        report_progress(progress, 80, "Processing generated images...")
        images = [
            GeneratedImage(
                url=item.url or "",
                base64_data=item.b64_json,
                width=width,
                height=height,
                revised_prompt=item.revised_prompt,
            )
            for item in body.data
            if item.url or item.b64_json
        ]
        report_progress(progress, 100, "Image generation complete!")

        return ImageResponse(images=images, model=model, provider_name=self.display_name)
