"""
Typed wire schemas for the supported backends.

Request models are serialized with ``exclude_none`` where the backend
expects unset optional fields to be omitted. Response models declare every
field optional so a sparse body still validates; anything unexpected is
ignored.
"""

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


# OpenAI chat completions


class ChatMessagePayload(BaseModel):
    role: str
    content: str
    name: str | None = None


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[ChatMessagePayload]
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: list[str] | None = None


class ChatCompletionMessage(_Lenient):
    content: str | None = None


class ChatCompletionChoice(_Lenient):
    message: ChatCompletionMessage | None = None
    finish_reason: str | None = None


class ChatCompletionUsage(_Lenient):
    total_tokens: int = 0


class ChatCompletionResponse(_Lenient):
    choices: list[ChatCompletionChoice] = Field(default_factory=list)
    usage: ChatCompletionUsage | None = None


# OpenAI image generations


class ImageGenerationRequest(BaseModel):
    model: str
    prompt: str
    n: int
    size: str
    quality: str
    style: str
    response_format: str = "url"


class ImageGenerationItem(_Lenient):
    url: str | None = None
    b64_json: str | None = None
    revised_prompt: str | None = None


class ImageGenerationResponse(_Lenient):
    data: list[ImageGenerationItem] = Field(default_factory=list)


# SwarmUI


class SwarmSessionResponse(_Lenient):
    session_id: str | None = None


class SwarmGenerateRequest(BaseModel):
    session_id: str
    prompt: str
    negativeprompt: str
    model: str
    images: int
    width: int
    height: int
    steps: int
    cfgscale: float
    seed: int
    donotsave: bool


class SwarmGenerateResponse(_Lenient):
    images: list[str] = Field(default_factory=list)
    error_id: str | None = None
    error: str | None = None
