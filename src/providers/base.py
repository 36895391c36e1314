"""
Base classes for AI Providers.

This module defines the stable contract that every provider adapter must
implement, per kind (text generation, image generation), together with the
value types that flow through it.

The contract is designed to be:
- Uniform: callers never branch on the concrete backend
- Non-throwing: ``generate()`` returns a failure value instead of raising
- Declarative: capabilities are fixed per adapter and never enforced

Cancellation is the one outcome that does cross the boundary: cancelling
the awaiting task raises ``asyncio.CancelledError`` in the caller, distinct
from a failure value.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any

from src.exceptions import ProviderError

logger = logging.getLogger(__name__)

# progress(percent, message)
ProgressCallback = Callable[[int, str], None]


def _error_message(error: Exception) -> str:
    if isinstance(error, ProviderError):
        return error.message
    return str(error) or type(error).__name__


def report_progress(progress: ProgressCallback | None, percent: int, message: str) -> None:
    """Invoke a progress callback, never letting it break generation."""
    if progress is None:
        return
    try:
        progress(percent, message)
    except Exception as e:
        logger.warning(f"Progress callback failed at {percent}%: {e}")


class ProviderKind(str, Enum):
    """What a provider generates."""

    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class ProviderIdentity:
    """Immutable identity assigned at adapter construction."""

    id: str
    display_name: str
    kind: ProviderKind


@dataclass(frozen=True)
class ProviderCapabilities:
    """Describes what a provider can do.

    Well-known flags are typed fields; backend-specific flags go into
    ``extensions``. Capabilities are suggestions to callers only.
    """

    supports_streaming: bool = False
    supports_chat: bool = False
    supports_vision: bool = False
    supports_function_calling: bool = False
    max_context_tokens: int = 0
    max_image_size: int = 0
    supported_formats: tuple[str, ...] = ()
    supported_sizes: tuple[str, ...] = ()
    supported_languages: tuple[str, ...] = ()
    extensions: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extensions", MappingProxyType(dict(self.extensions)))

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a backend-specific flag."""
        return self.extensions.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "extensions"}
        data["extensions"] = dict(self.extensions)
        return data


@dataclass(frozen=True)
class ModelPricing:
    """Advertised pricing for one model (USD unless stated)."""

    input_cost_per_1k_tokens: float = 0.0
    output_cost_per_1k_tokens: float = 0.0
    image_cost_per_generation: float = 0.0
    currency: str = "USD"


@dataclass(frozen=True)
class AIModel:
    """A model advertised by a provider's static catalog."""

    model_id: str
    display_name: str
    provider_id: str
    provider_name: str
    kind: ProviderKind
    priority: int = 0
    max_tokens: int = 0
    max_image_size: int = 0
    pricing: ModelPricing | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass
class ChatMessage:
    """A message in a chat conversation."""

    role: str
    content: str
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)

    def to_dict(self) -> dict[str, str]:
        data = {"role": self.role, "content": self.content}
        if self.name:
            data["name"] = self.name
        return data


@dataclass
class TextRequest:
    """Request parameters for text generation.

    Optional sampling fields left as ``None`` are omitted from the wire
    payload rather than sent as null.
    """

    prompt: str = ""
    model: str | None = None
    max_tokens: int | None = 500
    temperature: float | None = 0.8
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: list[str] | None = None
    system_message: str | None = None


@dataclass
class TextResponse:
    """Standardized response from any text provider.

    A response is either a success (``text`` populated, possibly empty) or
    a failure (``error`` populated). It is never raised.
    """

    text: str = ""
    model: str = ""
    provider_name: str = ""
    tokens_used: int = 0
    finish_reason: str | None = None
    error: str | None = None
    error_type: str | None = None
    status_code: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return not self.error

    @classmethod
    def failure(cls, error: Exception, provider_name: str, model: str = "") -> "TextResponse":
        """Build a failure value from an error caught at the adapter boundary."""
        return cls(
            model=model,
            provider_name=provider_name,
            error=_error_message(error),
            error_type=type(error).__name__,
            status_code=getattr(error, "status_code", None),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["is_success"] = self.is_success
        return data


@dataclass
class ImageRequest:
    """Request parameters for image generation."""

    prompt: str = ""
    negative_prompt: str | None = None
    model: str | None = None
    count: int = 1
    width: int = 1024
    height: int = 1024
    size: str | None = None  # preset such as "1024x1024"; overrides width/height where supported
    steps: int | None = None
    guidance_scale: float | None = None
    seed: int = -1  # -1 for random
    quality: str | None = None
    style: str | None = None
    format: str = "png"
    save_to_server: bool = True

    def dimensions(self) -> tuple[int, int]:
        """Width and height, taken from ``size`` when it is a "WxH" preset."""
        if self.size:
            width, sep, height = self.size.lower().partition("x")
            if sep and width.isdigit() and height.isdigit():
                return int(width), int(height)
        return self.width, self.height


@dataclass
class GeneratedImage:
    """A single generated asset."""

    url: str = ""
    file_path: str | None = None
    base64_data: str | None = None
    width: int = 0
    height: int = 0
    seed: int | None = None
    revised_prompt: str | None = None


@dataclass
class ImageResponse:
    """Standardized response from any image provider."""

    images: list[GeneratedImage] = field(default_factory=list)
    model: str = ""
    provider_name: str = ""
    error: str | None = None
    error_type: str | None = None
    status_code: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return not self.error

    @classmethod
    def failure(cls, error: Exception, provider_name: str, model: str = "") -> "ImageResponse":
        """Build a failure value from an error caught at the adapter boundary."""
        return cls(
            model=model,
            provider_name=provider_name,
            error=_error_message(error),
            error_type=type(error).__name__,
            status_code=getattr(error, "status_code", None),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["is_success"] = self.is_success
        return data


class AIProvider(ABC):
    """Abstract base class shared by every provider kind.

    Example:
        class MyTextProvider(TextProvider):
            @property
            def identity(self):
                return ProviderIdentity("mine", "Mine", ProviderKind.TEXT)
            ...

        registry.register(MyTextProvider())
        provider = await registry.select_text("mine")
    """

    @property
    @abstractmethod
    def identity(self) -> ProviderIdentity:
        """Immutable identity of this adapter."""
        pass

    @property
    def id(self) -> str:
        return self.identity.id

    @property
    def display_name(self) -> str:
        return self.identity.display_name

    @property
    def kind(self) -> ProviderKind:
        return self.identity.kind

    @abstractmethod
    def capabilities(self) -> ProviderCapabilities:
        """Return the statically declared capabilities of this provider."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Check whether the provider can serve a request right now.

        Must complete within the adapter's configured timeout. The side
        effects differ per adapter shape; see the concrete classes.
        """
        pass

    @abstractmethod
    def list_models(self) -> list[AIModel]:
        """Return the models this provider advertises."""
        pass

    def availability_hint(self) -> bool:
        """Best guess at availability without I/O or side effects.

        Used by listing views that must stay read-only. Providers that can
        tell cheaply override this.
        """
        return False

    @property
    def supported_models(self) -> list[str]:
        return [model.model_id for model in self.list_models()]

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None


class TextProvider(AIProvider):
    """Contract for text-generation providers."""

    async def generate(self, request: TextRequest) -> TextResponse:
        """Generate text from a single prompt.

        Builds an optional system message plus the user prompt and delegates
        to ``generate_chat``.
        """
        messages: list[ChatMessage] = []
        if request.system_message:
            messages.append(ChatMessage.system(request.system_message))
        messages.append(ChatMessage.user(request.prompt))
        return await self.generate_chat(messages, request)

    @abstractmethod
    async def generate_chat(
        self,
        messages: list[ChatMessage],
        request: TextRequest,
    ) -> TextResponse:
        """Generate text from a list of chat messages.

        Args:
            messages: Conversation so far, oldest first
            request: Generation parameters (``prompt`` and ``system_message``
                are ignored here; the messages carry the content)

        Returns:
            TextResponse; failures are returned, never raised
        """
        pass


class ImageProvider(AIProvider):
    """Contract for image-generation providers."""

    @abstractmethod
    async def generate(
        self,
        request: ImageRequest,
        progress: ProgressCallback | None = None,
    ) -> ImageResponse:
        """Generate images from a text prompt.

        Args:
            request: Generation parameters
            progress: Optional ``progress(percent, message)`` callback

        Returns:
            ImageResponse; failures are returned, never raised
        """
        pass
