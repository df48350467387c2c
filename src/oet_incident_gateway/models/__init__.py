"""Data models and transfer objects."""

from .attachment import (
    ChatAttachment,
    ChatMessage,
    MaterializedImage,
    SoapAttachmentItem,
    SoapFields,
)
from .incident import CanonicalIncident, IncidentRequest
from .result import (
    ErrorKind,
    IncidentOutcome,
    SubmissionFailure,
    SubmissionResult,
    SubmissionSuccess,
    ValidationFailure,
    outcome_code,
)

__all__ = [
    # Incident models
    "IncidentRequest",
    "CanonicalIncident",
    # Attachment models
    "ChatAttachment",
    "ChatMessage",
    "MaterializedImage",
    "SoapAttachmentItem",
    "SoapFields",
    # Result models
    "ErrorKind",
    "SubmissionSuccess",
    "SubmissionFailure",
    "ValidationFailure",
    "SubmissionResult",
    "IncidentOutcome",
    "outcome_code",
]
