"""
Stateless, token-authenticated provider shape.

The bearer credential lives in configuration. Availability is a pure local
check, and the ``Authorization`` header is attached lazily to the adapter's
long-lived client the first time the provider is found available.
"""

import logging

import httpx

from src.config.providers import ProviderConfig
from src.exceptions import ConfigurationError
from src.providers.base import AIProvider

logger = logging.getLogger(__name__)


class TokenAuthProvider(AIProvider):
    """Base class for providers that send a bearer key with every call.

    Subclasses combine it with ``TextProvider`` or ``ImageProvider``:

        class OpenAITextProvider(TokenAuthProvider, TextProvider):
            ...
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Settings for this provider
            client: Pre-built HTTP client (tests inject one); by default a
                client with the configured timeout is created and reused
                for the adapter's whole lifetime
        """
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def availability_hint(self) -> bool:
        return self._config.enabled and self._config.has_api_key

    async def is_available(self) -> bool:
        """True when the provider is enabled and has a credential.

        No network call is made. Attaches the bearer header on first success.
        """
        available = self.availability_hint()
        if available:
            self._ensure_auth_header()
        return available

    def _ensure_auth_header(self) -> None:
        # No await between check and set, so concurrent first calls on the
        # event loop cannot interleave here.
        if "Authorization" in self._client.headers:
            return
        self._client.headers["Authorization"] = f"Bearer {self._config.api_key}"
        logger.debug(
            f"Attached bearer credential for {self.display_name}",
            extra={"provider_id": self.id},
        )

    def _require_credentials(self) -> None:
        """Raise unless the provider can authenticate a request."""
        if not self._config.enabled:
            raise ConfigurationError(
                f"{self.display_name} provider is disabled", provider=self.display_name
            )
        if not self._config.has_api_key:
            raise ConfigurationError(
                f"{self.display_name} API key is not configured", provider=self.display_name
            )
        self._ensure_auth_header()

    async def aclose(self) -> None:
        await self._client.aclose()
