"""Data models for incident reports."""

import re
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

NIT_PATTERN = r"^[0-9-]+$"
PHONE_PATTERN = r"^\+?[0-9\s()-]+$"
DIGITS_PATTERN = r"^[0-9]+$"

# Reporter-facing wording for each pattern constraint
PATTERN_MESSAGES = {
    NIT_PATTERN: "must contain only digits and hyphens",
    PHONE_PATTERN: "has an invalid phone number format",
    DIGITS_PATTERN: "must contain only digits",
}

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

OptionalDigits = Annotated[str, StringConstraints(max_length=50, pattern=DIGITS_PATTERN)]
# Ends up in the chat platform URL path
ConversationId = Annotated[str, StringConstraints(max_length=20, pattern=DIGITS_PATTERN)]


class IncidentRequest(BaseModel):
    """Inbound incident payload as sent by the chat platform.

    Field names are the wire names. Unknown keys are ignored, and null or
    blank values count as absent. Pass ``context={"enforce_nit_checksum":
    True}`` to :meth:`model_validate` to also check the NIT check digit.
    """

    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    nit_transp: str = Field(min_length=5, max_length=50, pattern=NIT_PATTERN)
    contact_name: str = Field(min_length=3, max_length=100)
    client_email: str = Field(max_length=100)
    description: str = Field(min_length=10, max_length=5000)
    subject_name: str = Field(min_length=5, max_length=200)
    phone_user: str = Field(min_length=7, max_length=20, pattern=PHONE_PATTERN)
    conversation_id: ConversationId | None = Field(
        default=None,
        validation_alias=AliasChoices("conversationId", "conversation_id"),
    )
    cod_product: OptionalDigits | None = None
    id_project: OptionalDigits | None = None
    files_urls: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: value
            for key, value in data.items()
            if value is not None and not (isinstance(value, str) and not value.strip())
        }

    @field_validator("client_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not _EMAIL.match(value):
            raise PydanticCustomError("email_format", "must be a valid email address")
        return value

    @field_validator("nit_transp")
    @classmethod
    def _check_nit_checksum(cls, value: str, info: ValidationInfo) -> str:
        if not (info.context or {}).get("enforce_nit_checksum"):
            return value

        from oet_incident_gateway.core.nit_validator import NitFormatError, validate_nit

        try:
            validate_nit(value)
        except NitFormatError as e:
            raise PydanticCustomError("nit_checksum", "{reason}", {"reason": str(e)}) from e
        return value


@dataclass(frozen=True)
class CanonicalIncident:
    """A validated incident, built once per request."""

    nit_transp: str
    contact_name: str
    client_email: str
    description: str
    subject_name: str
    phone_user: str
    conversation_id: str | None = None
    cod_product: str | None = None
    id_project: str | None = None
    files_urls: str | None = None

    @classmethod
    def from_request(cls, request: IncidentRequest) -> "CanonicalIncident":
        return cls(
            nit_transp=request.nit_transp,
            contact_name=request.contact_name,
            client_email=request.client_email,
            description=request.description,
            subject_name=request.subject_name,
            phone_user=request.phone_user,
            conversation_id=request.conversation_id,
            cod_product=request.cod_product,
            id_project=request.id_project,
            files_urls=request.files_urls,
        )
