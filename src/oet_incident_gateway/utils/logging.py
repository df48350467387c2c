"""Structured logging for the gateway.

Every entry goes through the same processor chain before it is rendered:

* contextvars (``request_id``, ``conversation_id``) are merged in,
* reporter-supplied free text is replaced by its length,
* credentials are redacted and inline ``data:`` payloads shortened.

Output is JSON lines for aggregation or a colored console view for local
runs, written to stderr and optionally to a file.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import Any, cast

import structlog
from structlog.typing import Processor, WrappedLogger

from oet_incident_gateway._version import __version__
from oet_incident_gateway.utils.security import (
    SecretRedactor,
    sanitize_for_logging,
    truncate_data_uris,
)

SERVICE_NAME = "oet-incident-gateway"

# Incident fields typed by the reporter; only their size is logged
INCIDENT_TEXT_KEYS = frozenset(
    {
        "contact_name",
        "client_email",
        "description",
        "phone_user",
        "tex_messag",
    }
)


class LogFormat(StrEnum):
    """Renderer used for log output."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_redactor = SecretRedactor(placeholder="[REDACTED]")


def sanitize_log_value(value: Any) -> Any:
    """Scrub a log value, descending into dicts, lists and tuples.

    Strings lose control characters, have data URIs cut to a preview and
    credentials replaced by ``[REDACTED]``. Other scalars pass through.
    """
    if isinstance(value, str):
        return _redactor.redact(truncate_data_uris(sanitize_for_logging(value)))
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def drop_incident_text(
    logger: WrappedLogger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Replace reporter free text with ``<N chars>`` so PII stays out of logs."""
    for key in INCIDENT_TEXT_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = f"<{len(value)} chars>"
    return event_dict


def secret_sanitizer(
    logger: WrappedLogger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor wrapping :func:`sanitize_log_value`."""
    return cast(MutableMapping[str, Any], sanitize_log_value(event_dict))


def add_context_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Stamp entries with the service name and version."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def _renderer(log_format: LogFormat) -> Processor:
    if log_format is LogFormat.CONSOLE:
        return structlog.dev.ConsoleRenderer(
            colors=True, exception_formatter=structlog.dev.plain_traceback
        )
    return structlog.processors.JSONRenderer()


def _handlers(numeric_level: int, file_path: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(file_path))
        except OSError as exc:
            # Keep logging to stderr only
            logging.getLogger(__name__).warning("Could not open log file %s: %s", file_path, exc)
    for handler in handlers:
        handler.setLevel(numeric_level)
    return handlers


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Install the structlog pipeline and the stdlib handlers behind it.

    Args:
        level: Minimum level, case-insensitive when given as a string.
        log_format: ``json`` or ``console``.
        file_path: Log file, used only when ``file_enabled`` is true.
        file_enabled: Also write entries to ``file_path``.
    """
    level = LogLevel(str(level).upper())
    log_format = LogFormat(str(log_format).lower())
    numeric_level = logging.getLevelName(level.value)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        drop_incident_text,
        secret_sanitizer,
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    target = Path(file_path) if file_enabled and file_path else None
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_handlers(numeric_level, target),
        force=True,
    )


def get_logger(name: str | None = None) -> WrappedLogger:
    return cast(WrappedLogger, structlog.get_logger(name))


def bind_context(**kwargs: Any) -> None:
    """Attach values (``request_id``, ``conversation_id``) to later log calls."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
