"""Core business logic components.

This module exports the incident pipeline classes:
- IncidentOrchestrator: Sequences one incident through the pipeline
- IncidentValidator: Checks payload fields and builds the canonical record
- ImageMaterializer: Downloads attachment images as data URIs
- SoapRequestBuilder: Maps incidents onto SOAP wire fields
- validate_nit: Colombian tax identifier check
"""

from oet_incident_gateway.core.image_materializer import ImageMaterializer, decode_data_uri
from oet_incident_gateway.core.incident_validator import IncidentValidator, ValidationOutcome
from oet_incident_gateway.core.nit_validator import (
    NitErrorKind,
    NitFormatError,
    calculate_check_digit,
    is_valid_nit,
    validate_nit,
)
from oet_incident_gateway.core.orchestrator import IncidentOrchestrator, create_orchestrator
from oet_incident_gateway.core.soap_request_builder import (
    FALLBACK_PROJECT_ID,
    SoapRequestBuilder,
    to_attachment_items,
)

__all__ = [
    "FALLBACK_PROJECT_ID",
    "ImageMaterializer",
    "IncidentOrchestrator",
    "IncidentValidator",
    "NitErrorKind",
    "NitFormatError",
    "SoapRequestBuilder",
    "ValidationOutcome",
    "calculate_check_digit",
    "create_orchestrator",
    "decode_data_uri",
    "is_valid_nit",
    "to_attachment_items",
    "validate_nit",
]
