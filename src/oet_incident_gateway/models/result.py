"""Data models for submission outcomes.

Every outcome of the incident pipeline is a value, never an exception:
``SubmissionSuccess`` and ``SubmissionFailure`` come from the ticketing
backend, ``ValidationFailure`` from local input validation. Each exposes
``to_dict()`` producing the JSON body returned to the caller.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Closed error taxonomy; the value is the wire ``code``."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    OET_PARENT_TASK_ERROR = "OET_PARENT_TASK_ERROR"
    OET_AUTH_ERROR = "OET_AUTH_ERROR"
    OET_VALIDATION_ERROR = "OET_VALIDATION_ERROR"
    OET_ERROR = "OET_ERROR"
    OET_SERVICE_ERROR = "OET_SERVICE_ERROR"


@dataclass(frozen=True)
class SubmissionSuccess:
    """The backend accepted the ticket (code 1000)."""

    ticket_id: str | None = None
    message: str | None = None

    ok = True

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": "ok"}
        if self.ticket_id is not None:
            body["task_id"] = self.ticket_id
        if self.message is not None:
            body["message"] = self.message
        return body


@dataclass(frozen=True)
class SubmissionFailure:
    """A classified backend or transport failure."""

    error_kind: ErrorKind
    message: str
    backend_code: str | None = None
    retryable: bool = False

    ok = False

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": "error", "code": self.error_kind.value}
        if self.backend_code is not None:
            body["oet_code"] = self.backend_code
        body["message"] = self.message
        if self.retryable:
            body["retry_available"] = True
        return body


@dataclass(frozen=True)
class ValidationFailure:
    """The incident was rejected before reaching the backend."""

    errors: tuple[str, ...]
    message: str = "Invalid incident data"

    ok = False
    error_kind = ErrorKind.VALIDATION_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "error",
            "code": self.error_kind.value,
            "message": self.message,
            "errors": list(self.errors),
        }


SubmissionResult = SubmissionSuccess | SubmissionFailure
IncidentOutcome = SubmissionSuccess | SubmissionFailure | ValidationFailure


def outcome_code(outcome: IncidentOutcome) -> str:
    """Short label for metrics and logs (``ok`` or the error code)."""
    if isinstance(outcome, SubmissionSuccess):
        return "ok"
    return outcome.error_kind.value
