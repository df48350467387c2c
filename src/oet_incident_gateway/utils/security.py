"""Redaction and input hygiene for log output and configuration.

The gateway handles two credentials: the ticketing backend password, which
travels inside every SOAP envelope as ``<pwd_usulog>``, and the chat platform
``api_access_token`` header. Both must never be written to the logs, and
neither should the inline base64 images carried by ``<file>`` items. All log
entries pass through :class:`SecretRedactor` and :func:`truncate_data_uris`.

Redaction fails closed: a pattern that cannot be compiled aborts start-up
with :class:`RedactionError` instead of letting output through unfiltered.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, NamedTuple
from urllib.parse import urlparse

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = structlog.get_logger()

DATA_URI_PREVIEW_LENGTH = 32

_DATA_URI = re.compile(
    r"(data:[\w.+-]+/[\w.+-]+;base64,)([A-Za-z0-9+/=]{%d})[A-Za-z0-9+/=]+"
    % DATA_URI_PREVIEW_LENGTH
)
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_SENSITIVE_KEY_PARTS = ("token", "key", "secret", "password", "credential")


class RedactionError(Exception):
    """Raised when secret redaction cannot be performed."""


class SecretPattern(NamedTuple):
    name: str
    regex: re.Pattern[str]


# (regex, description) pairs checked in order
BUILTIN_PATTERNS: tuple[tuple[str, str], ...] = (
    # Only the element body, so the envelope stays readable
    (r"(?<=<pwd_usulog>)[^<]+(?=</pwd_usulog>)", "OET password element"),
    (r"(?i)api_access_token[\"']?\s*[=:]\s*[\"']?[\w-]{8,}", "Chatwoot access token"),
    (
        r"(?i)(api[_-]?key|secret|token|password|passwd|credential)\s*[=:]\s*[\"']?[\w-]{8,}",
        "Generic secret",
    ),
    (r"(?i)bearer\s+[\w.~+/-]+=*", "Bearer token"),
    (r"eyJ[\w-]*\.eyJ[\w-]*\.[\w-]*", "JWT"),
    (
        r"(?i)(postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://[^:]+:[^@]+@\S+",
        "Database connection string",
    ),
    (r"(?<=://)[^/\s:@]+:[^/\s@]+(?=@)", "URL credentials"),
    (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "Private key header"),
)


def _compile(patterns: Iterable[tuple[str, str]]) -> list[SecretPattern]:
    compiled = []
    for source, name in patterns:
        try:
            compiled.append(SecretPattern(name, re.compile(source)))
        except re.error as e:
            log.error("secret_pattern_invalid", pattern_name=name, error=str(e))
            raise RedactionError(f"Failed to compile secret pattern {name!r}: {e}") from e
    return compiled


class SecretRedactor:
    """Replaces credentials in free text with a placeholder.

    Example:
        redactor = SecretRedactor()
        redactor.redact("<pwd_usulog>s3cret</pwd_usulog>")
        # '<pwd_usulog>[REDACTED]</pwd_usulog>'
    """

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Compile the built-in patterns plus any ``(regex, name)`` extras.

        Raises:
            RedactionError: If a pattern does not compile.
        """
        self.placeholder = placeholder
        self._patterns = _compile([*BUILTIN_PATTERNS, *(custom_patterns or ())])

    @property
    def pattern_names(self) -> list[str]:
        return [pattern.name for pattern in self._patterns]

    def redact(self, text: str) -> str:
        if not text:
            return text
        try:
            for pattern in self._patterns:
                text = pattern.regex.sub(self.placeholder, text)
        except (re.error, TypeError) as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e
        return text

    def has_secrets(self, text: str) -> bool:
        return bool(text) and any(pattern.regex.search(text) for pattern in self._patterns)


def truncate_data_uris(text: str) -> str:
    """Cut each ``data:<mime>;base64,`` payload to a short preview followed by ``...``."""
    if not text or "base64," not in text:
        return text
    return _DATA_URI.sub(r"\1\2...", text)


def validate_http_url(url: str) -> bool:
    """Return True for an absolute ``http`` or ``https`` URL with a host."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def sanitize_for_logging(text: str) -> str:
    """Strip ANSI escapes and control characters, keeping tabs and newlines.

    Reporter-supplied strings can otherwise forge log lines or garble a
    terminal.
    """
    if not text:
        return text
    return _CONTROL_CHARS.sub("", _ANSI_ESCAPE.sub("", text))


def mask_config_value(key: str, value: str) -> str:
    """Show only the ends of a secret configuration value.

    Values under keys such as ``token`` or ``password`` become ``ab...yz``,
    or ``***`` when too short to reveal anything. Other values are returned
    as is.
    """
    if not any(part in key.lower() for part in _SENSITIVE_KEY_PARTS):
        return value
    if len(value) > 8:
        return f"{value[:2]}...{value[-2:]}"
    return "***"
