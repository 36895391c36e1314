"""
Exception hierarchy for the AI provider routing layer.

Adapters raise these internally while talking to a backend and convert them
into failure values at their boundary, so callers of ``generate()`` and
``is_available()`` never see them. The registry raises
``ProviderNotFoundError`` from its ``require_*`` helpers, and configuration
loading raises ``ConfigurationError`` at process start.

Usage:
    from src.exceptions import ProviderError, ProviderNotFoundError

    try:
        provider = await registry.require_text()
    except ProviderNotFoundError:
        # No provider of this kind is available right now
        return fallback_quiz()

Taxonomy:
    ProviderError
    ├── ConfigurationError     missing/invalid credentials or config values
    ├── TransportError         network failure or timeout
    ├── ProtocolError          unexpected or malformed response body
    ├── BackendSemanticError   well-formed response carrying a backend error code
    └── ProviderNotFoundError  registry has no available provider for a kind
"""

from typing import Any


class ProviderError(Exception):
    """Base exception for all provider routing errors.

    Attributes:
        message: Human-readable error description.
        provider: Display name of the provider that raised the error.
        status_code: HTTP status code if applicable.
        details: Optional dict with additional error context.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.details = details or {}

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.insert(0, f"[{self.provider}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)


class ConfigurationError(ProviderError):
    """Configuration is invalid or missing.

    Raised when:
    - An API key is missing for a token-authenticated provider
    - The providers configuration file is malformed
    - A numeric setting is out of range (e.g. non-positive timeout)
    """

    pass


class TransportError(ProviderError):
    """The backend could not be reached.

    Wraps connection failures, read/write errors and timeouts raised by the
    HTTP client.
    """

    pass


class ProtocolError(ProviderError):
    """The backend answered with a body that could not be understood.

    Raised when a response is not JSON or does not match the expected schema.
    """

    pass


class BackendSemanticError(ProviderError):
    """The backend answered well-formed JSON signalling an error of its own.

    Attributes:
        error_code: Backend-defined error identifier (e.g. "invalid_session_id").
    """

    def __init__(self, message: str, *, error_code: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.error_code = error_code


class ProviderNotFoundError(ProviderError):
    """No registered provider of the requested kind is available.

    Attributes:
        kind: Provider kind that was requested ("text" or "image").
        preferred_id: Preferred provider id passed by the caller, if any.
    """

    def __init__(
        self,
        message: str = "No available provider found",
        *,
        kind: str | None = None,
        preferred_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.kind = kind
        self.preferred_id = preferred_id


__all__ = [
    "ProviderError",
    "ConfigurationError",
    "TransportError",
    "ProtocolError",
    "BackendSemanticError",
    "ProviderNotFoundError",
]
