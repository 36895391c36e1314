"""
Stateful, session-authenticated provider shape.

The backend issues an opaque session handle that must accompany every
generation call. The handle is cached per adapter instance and discarded
when the backend reports it invalid:

    NO_SESSION -> ESTABLISHING -> ACTIVE -> (invalid session) -> NO_SESSION

Session acquisition is single-flight: concurrent callers that find no
session wait on one acquisition instead of each creating their own.
"""

import asyncio
import logging
from abc import abstractmethod
from enum import Enum

import httpx

from src.config.providers import ProviderConfig
from src.exceptions import ProviderError
from src.providers.base import AIProvider

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NO_SESSION = "no_session"
    ESTABLISHING = "establishing"
    ACTIVE = "active"


class SessionAuthProvider(AIProvider):
    """Base class for providers that authenticate with a backend session.

    Subclasses implement ``_create_session`` (one network call returning the
    new handle or raising ``ProviderError``) and combine this class with
    ``TextProvider`` or ``ImageProvider``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        default_base_url: str,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Settings for this provider
            default_base_url: Backend address used when the config has none
            client: Pre-built HTTP client; by default one bound to the base
                URL with the configured timeout is created and reused
        """
        self._config = config
        self._base_url = (config.base_url or default_base_url).rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url, timeout=config.timeout_seconds
        )
        self._session_id: str | None = None
        self._state = SessionState.NO_SESSION
        self._session_lock = asyncio.Lock()
        self._last_session_error: ProviderError | None = None

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_session_error(self) -> ProviderError | None:
        """Why the most recent session acquisition failed, if it did."""
        return self._last_session_error

    def availability_hint(self) -> bool:
        return self._config.enabled and self._session_id is not None

    async def is_available(self) -> bool:
        """Establish (or reuse) a session; True when one is held.

        Not read-only: checking an adapter with no session creates one.
        A provider disabled in configuration reports False without any
        network call. Unexpected errors while acquiring a session also
        report False; cancellation still propagates.
        """
        if not self._config.enabled:
            return False
        try:
            return await self.ensure_session() is not None
        except Exception as e:
            logger.exception(
                f"Unexpected error checking {self.display_name}: {e}",
                extra={"provider_id": self.id},
            )
            return False

    async def ensure_session(self) -> str | None:
        """Return the cached session, acquiring one if needed.

        Returns:
            The session handle, or None if acquisition failed
        """
        if self._session_id:
            return self._session_id

        async with self._session_lock:
            # Another caller may have finished acquiring while we waited.
            if self._session_id:
                return self._session_id

            self._state = SessionState.ESTABLISHING
            try:
                session_id = await self._create_session()
            except ProviderError as e:
                logger.error(
                    f"Error creating {self.display_name} session: {e}",
                    extra={"provider_id": self.id},
                )
                self._last_session_error = e
                session_id = None
            finally:
                # Covers cancellation while the acquisition was in flight.
                self._state = SessionState.NO_SESSION

            if session_id:
                self._session_id = session_id
                self._state = SessionState.ACTIVE
                self._last_session_error = None
                logger.info(
                    f"{self.display_name} session created",
                    extra={"provider_id": self.id},
                )
            return session_id

    def invalidate_session(self, session_id: str | None = None) -> None:
        """Drop the cached session.

        Args:
            session_id: Only drop the cache if it still holds this handle,
                so a stale failure cannot discard a newer session
        """
        if session_id is not None and session_id != self._session_id:
            return
        if self._session_id is None:
            return
        self._session_id = None
        self._state = SessionState.NO_SESSION
        logger.warning(
            f"{self.display_name} session invalidated", extra={"provider_id": self.id}
        )

    @abstractmethod
    async def _create_session(self) -> str:
        """Acquire a new session handle from the backend.

        Raises:
            ProviderError: If the backend is unreachable or refuses
        """
        pass

    async def aclose(self) -> None:
        await self._client.aclose()
