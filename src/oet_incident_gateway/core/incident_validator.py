"""Validation of inbound incident payloads.

The rules live on :class:`IncidentRequest`; this module turns pydantic's
error list into messages prefixed with the wire field name, so callers can
map every violation back to its form field.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError
from pydantic_core import ErrorDetails

from oet_incident_gateway.models.incident import (
    PATTERN_MESSAGES,
    CanonicalIncident,
    IncidentRequest,
)

log = structlog.get_logger()


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one payload."""

    value: CanonicalIncident | None = None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.errors


def describe_error(error: ErrorDetails) -> str:
    """Render one pydantic error as ``<field> <reason>``."""
    field = ".".join(str(part) for part in error["loc"]) or "body"
    ctx = error.get("ctx", {})

    kind = error["type"]
    if kind == "missing":
        return f"{field} is required"
    if kind == "string_type":
        return f"{field} must be a string"
    if kind == "string_too_short":
        return f"{field} must be at least {ctx['min_length']} characters"
    if kind == "string_too_long":
        return f"{field} must be at most {ctx['max_length']} characters"
    if kind == "string_pattern_mismatch":
        return f"{field} {PATTERN_MESSAGES.get(ctx.get('pattern', ''), 'has an invalid format')}"
    if kind == "nit_checksum":
        return f"{field}: {error['msg']}"
    return f"{field} {error['msg']}"


class IncidentValidator:
    """Validates incident payloads and builds the canonical record.

    Example:
        validator = IncidentValidator(enforce_nit_checksum=True)
        outcome = validator.validate(payload)
        if not outcome.ok:
            print(outcome.errors)
    """

    def __init__(self, enforce_nit_checksum: bool = False) -> None:
        """Initialize the validator.

        Args:
            enforce_nit_checksum: Also run the full NIT format and check-digit
                validation on ``nit_transp``.
        """
        self._enforce_nit_checksum = enforce_nit_checksum

    def validate(self, data: Any) -> ValidationOutcome:
        """Validate a raw payload.

        Args:
            data: Decoded JSON body.

        Returns:
            ValidationOutcome with either the canonical incident or every
            violated rule.
        """
        if not isinstance(data, Mapping):
            return ValidationOutcome(errors=("Request body must be a JSON object",))

        try:
            request = IncidentRequest.model_validate(
                dict(data),
                context={"enforce_nit_checksum": self._enforce_nit_checksum},
            )
        except ValidationError as e:
            errors = tuple(describe_error(error) for error in e.errors())
            log.info("incident_rejected", error_count=len(errors))
            return ValidationOutcome(errors=errors)

        return ValidationOutcome(value=CanonicalIncident.from_request(request))
