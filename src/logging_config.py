"""
Structured JSON logging for the provider routing layer.

Every log line is one JSON object. The registry and the adapters attach
``provider_id`` and ``provider_kind`` through ``extra`` so that failover
decisions and backend errors can be filtered per provider. The quiz
service calling into this layer may add a ``correlation_id`` (typically the
quiz request id) to tie a selection and its generation calls together.

Usage:
    from src.logging_config import provider_context, setup_logging

    setup_logging("INFO")
    logger.warning(
        "Using fallback image provider",
        extra=provider_context(provider, correlation_id=request_id),
    )
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Record attributes copied into the JSON entry when set via ``extra``.
CONTEXT_FIELDS = ("correlation_id", "provider_id", "provider_kind")

# Per-request lines from the HTTP client would drown out provider logs.
QUIET_LOGGERS = ("httpx", "httpcore")


def provider_context(provider: Any = None, correlation_id: str | None = None) -> dict[str, Any]:
    """Build the ``extra`` mapping for a log call about one provider.

    Args:
        provider: Adapter the line is about; anything with ``id`` and ``kind``
        correlation_id: Id of the quiz request being served, if known

    Returns:
        Dict holding only the context fields that are known
    """
    context: dict[str, Any] = {}
    if provider is not None:
        context["provider_id"] = provider.id
        context["provider_kind"] = getattr(provider.kind, "value", provider.kind)
    if correlation_id:
        context["correlation_id"] = correlation_id
    return context


class JSONFormatter(logging.Formatter):
    """
    JSON formatter emitting UTC timestamps and provider context.

    Example:
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(JSONFormatter())
        >>> logger = logging.getLogger(__name__)
        >>> logger.addHandler(handler)
        >>> logger.warning("SwarmUI session invalidated", extra={"provider_id": "swarmui"})
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry = {
            "timestamp": timestamp.replace(tzinfo=None).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO"):
    """
    Route all logging through one stdout handler emitting JSON.

    Call once at process start, before ``build_registry()``, so adapter
    registration is logged in the same format.

    Args:
        level: Log level name, case-insensitive (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Raises:
        ValueError: If the level name is unknown
    """
    level_name = level.upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info("Structured JSON logging configured", extra={"log_level": level_name})
