"""
SwarmUI Image Provider.

Session-authenticated adapter for a self-hosted SwarmUI instance serving
Stable Diffusion models. Sessions come from ``/API/GetNewSession`` and are
reused until the backend answers ``invalid_session_id``.
"""

import logging

import httpx

from src.config.providers import ProviderConfig
from src.exceptions import BackendSemanticError, ProtocolError, ProviderError
from src.providers.base import (
    AIModel,
    GeneratedImage,
    ImageProvider,
    ImageRequest,
    ImageResponse,
    ProgressCallback,
    ProviderCapabilities,
    ProviderIdentity,
    ProviderKind,
    report_progress,
)
from src.providers.schemas import (
    SwarmGenerateRequest,
    SwarmGenerateResponse,
    SwarmSessionResponse,
)
from src.providers.session_auth import SessionAuthProvider
from src.providers.transport import check_status, decode, post_json

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:7801"
DEFAULT_MODEL = "OfficialStableDiffusion/sd_xl_base_1.0"
DEFAULT_STEPS = 20
DEFAULT_CFG_SCALE = 7.5

SESSION_PATH = "/API/GetNewSession"
GENERATE_PATH = "/API/GenerateText2Image"
INVALID_SESSION_ERROR = "invalid_session_id"

SUPPORTED_SIZES = (
    "512x512",
    "768x768",
    "1024x1024",
    "1024x768",
    "768x1024",
    "1280x720",
    "720x1280",
    "1920x1080",
    "1080x1920",
)


class SwarmUIImageProvider(SessionAuthProvider, ImageProvider):
    """Stable Diffusion models via SwarmUI."""

    IDENTITY = ProviderIdentity(id="swarmui", display_name="SwarmUI", kind=ProviderKind.IMAGE)

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config, DEFAULT_BASE_URL, client)

    @property
    def identity(self) -> ProviderIdentity:
        return self.IDENTITY

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_streaming=True,  # websocket API
            max_image_size=2048,
            supported_formats=("png", "jpg", "webp"),
            supported_sizes=SUPPORTED_SIZES,
            extensions={
                "supports_negative_prompt": True,
                "supports_cfg_scale": True,
                "supports_steps": True,
                "supports_seed": True,
                "supports_multiple_models": True,
            },
        )

    def list_models(self) -> list[AIModel]:
        """Default model first, then any listed in ``custom_settings["models"]``.

        ``models`` may be a comma-separated string or a list.
        """
        default = self._config.default_model or DEFAULT_MODEL
        extra = self._config.custom_settings.get("models") or []
        if isinstance(extra, str):
            extra = [name.strip() for name in extra.split(",")]

        model_ids = [default]
        for name in extra:
            if name and name not in model_ids:
                model_ids.append(name)

        return [
            AIModel(
                model_id=model_id,
                display_name=model_id.rsplit("/", 1)[-1],
                provider_id=self.id,
                provider_name=self.display_name,
                kind=ProviderKind.IMAGE,
                priority=100 if model_id == default else 50,
                max_image_size=2048,
            )
            for model_id in model_ids
        ]

    def resolve_model(self, request: ImageRequest) -> str:
        return request.model or self._config.default_model or DEFAULT_MODEL

    def resolve_image_url(self, path: str) -> GeneratedImage:
        """Turn one entry of the ``images`` array into a GeneratedImage.

        Data URIs are carried inline; absolute URLs are kept; anything else
        is a server path joined to the base URL.
        """
        if path.startswith("data:"):
            _, _, data = path.partition(",")
            return GeneratedImage(base64_data=data)
        if path.startswith(("http://", "https://")):
            return GeneratedImage(url=path, file_path=path)
        return GeneratedImage(url=f"{self._base_url}/{path.lstrip('/')}", file_path=path)

    def build_payload(self, session_id: str, request: ImageRequest) -> dict:
        width, height = request.dimensions()
        body = SwarmGenerateRequest(
            session_id=session_id,
            prompt=request.prompt,
            negativeprompt=request.negative_prompt or "",
            model=self.resolve_model(request),
            images=request.count,
            width=width,
            height=height,
            steps=request.steps if request.steps is not None else DEFAULT_STEPS,
            cfgscale=(
                request.guidance_scale if request.guidance_scale is not None else DEFAULT_CFG_SCALE
            ),
            seed=request.seed,
            donotsave=not request.save_to_server,
        )
        return body.model_dump()

    async def _create_session(self) -> str:
        response = await post_json(self._client, SESSION_PATH, {}, provider=self.display_name)
        check_status(response, provider=self.display_name)
        body = decode(response, SwarmSessionResponse, provider=self.display_name)
        if not body.session_id:
            raise ProtocolError(
                "SwarmUI session response carried no session_id", provider=self.display_name
            )
        return body.session_id

    async def generate(
        self,
        request: ImageRequest,
        progress: ProgressCallback | None = None,
    ) -> ImageResponse:
        model = self.resolve_model(request)
        width, height = request.dimensions()

        try:
            session_id = await self.ensure_session()
            if not session_id:
                logger.error("Failed to create SwarmUI session", extra={"provider_id": self.id})
                return ImageResponse(
                    model=model,
                    provider_name=self.display_name,
                    error="Failed to create SwarmUI session",
                    error_type=type(self.last_session_error).__name__
                    if self.last_session_error
                    else None,
                )

            report_progress(progress, 10, "Preparing image generation request...")
            payload = self.build_payload(session_id, request)

            report_progress(progress, 30, "Calling SwarmUI API...")
            logger.debug(f"Calling SwarmUI with model: {model}", extra={"provider_id": self.id})
            response = await post_json(
                self._client,
                GENERATE_PATH,
                payload,
                provider=self.display_name,
                config=self._config,
            )
            check_status(response, provider=self.display_name)
            report_progress(progress, 80, "Processing generated images...")
            body = decode(response, SwarmGenerateResponse, provider=self.display_name)

            if body.error_id:
                if body.error_id == INVALID_SESSION_ERROR:
                    self.invalidate_session(session_id)
                raise BackendSemanticError(
                    f"SwarmUI error: {body.error_id}",
                    error_code=body.error_id,
                    provider=self.display_name,
                )
            if body.error:
                raise BackendSemanticError(
                    f"SwarmUI error: {body.error}",
                    error_code="backend_error",
                    provider=self.display_name,
                )
        except ProviderError as e:
            logger.error(f"Error calling SwarmUI API: {e}", extra={"provider_id": self.id})
            return ImageResponse.failure(e, self.display_name, model)
        except Exception as e:
            logger.exception(
                f"Unexpected error calling SwarmUI API: {e}", extra={"provider_id": self.id}
            )
            return ImageResponse.failure(e, self.display_name, model)

        images = []
        for path in body.images:
            image = self.resolve_image_url(path)
            image.width = width
            image.height = height
            image.seed = request.seed
            images.append(image)
        report_progress(progress, 100, "Image generation complete!")

        return ImageResponse(images=images, model=model, provider_name=self.display_name)
