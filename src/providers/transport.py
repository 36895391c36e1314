"""
HTTP transport helpers shared by provider adapters.

Every adapter owns one long-lived ``httpx.AsyncClient``; these helpers wrap
a single POST with bounded exponential-backoff retries and translate httpx
and decoding failures into the provider error taxonomy.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config.providers import ProviderConfig
from src.exceptions import (
    BackendSemanticError,
    ConfigurationError,
    ProtocolError,
    TransportError,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Transport failures worth another attempt. HTTP status errors are not retried.
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.NetworkError)
MAX_BACKOFF_SECONDS = 30


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"Retrying provider request (attempt {retry_state.attempt_number}): {exc!r}"
    )


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    *,
    provider: str,
    config: ProviderConfig | None = None,
) -> httpx.Response:
    """POST a JSON payload, retrying transport errors when a config is given.

    Args:
        client: The adapter's long-lived client
        url: Absolute URL, or a path relative to the client's base URL
        payload: JSON body
        provider: Display name used in error messages
        config: Provider config whose ``max_retries`` bounds the retries;
            ``None`` means a single attempt

    Returns:
        The HTTP response, whatever its status code

    Raises:
        TransportError: If every attempt failed at the network level
    """
    max_retries = config.max_retries if config else 0
    backoff = config.retry_backoff_seconds if config else 0

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=backoff, max=MAX_BACKOFF_SECONDS),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                response = await client.post(url, json=payload)
    except httpx.TimeoutException as e:
        raise TransportError(f"{provider} request timed out", provider=provider) from e
    except httpx.HTTPError as e:
        raise TransportError(f"{provider} network error: {e}", provider=provider) from e

    return response


def check_status(response: httpx.Response, *, provider: str) -> None:
    """Raise if the response does not carry a 2xx status.

    Raises:
        ConfigurationError: On 401/403 (credentials rejected)
        BackendSemanticError: On any other non-success status
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    detail = (response.text or "").strip()
    if len(detail) > 240:
        detail = detail[:240] + "..."
    logger.error(f"{provider} API error: {status} - {detail}")

    message = f"{provider} API error: HTTP {status}"
    if status in (401, 403):
        raise ConfigurationError(message, provider=provider, status_code=status)
    raise BackendSemanticError(
        message, error_code=f"http_{status}", provider=provider, status_code=status
    )


def decode(response: httpx.Response, schema: type[SchemaT], *, provider: str) -> SchemaT:
    """Parse a response body into a typed schema.

    Raises:
        ProtocolError: If the body is not JSON or does not match the schema
    """
    try:
        return schema.model_validate(response.json())
    except ValueError as e:
        raise ProtocolError(
            f"{provider} returned an unexpected response body",
            provider=provider,
            status_code=response.status_code,
        ) from e
