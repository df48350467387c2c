"""Mapping of validated incidents onto ``setSoport`` wire fields."""

from __future__ import annotations

from collections.abc import Sequence

from oet_incident_gateway.config.schema import OETConfig
from oet_incident_gateway.models.attachment import MaterializedImage, SoapAttachmentItem, SoapFields
from oet_incident_gateway.models.incident import CanonicalIncident

# Project used when neither the incident nor the configuration names one
FALLBACK_PROJECT_ID = "1"


def to_attachment_items(images: Sequence[MaterializedImage]) -> list[SoapAttachmentItem]:
    """Convert materialized images into ``dat_filexx`` items."""
    return [
        SoapAttachmentItem(
            file=image.data_uri,
            fil_sizexx=str(image.size),
            nom_filexx=image.filename,
            tip_attach=image.content_type,
        )
        for image in images
    ]


class SoapRequestBuilder:
    """Builds the scalar SOAP fields for one incident.

    Example:
        builder = SoapRequestBuilder(config.oet)
        fields = builder.build(incident)
    """

    def __init__(self, config: OETConfig) -> None:
        self._config = config

    def resolve_project_id(self, incident: CanonicalIncident) -> str:
        """Pick the project id: product code, then explicit project, then defaults."""
        return (
            incident.cod_product
            or incident.id_project
            or self._config.default_project_id
            or FALLBACK_PROJECT_ID
        )

    def build(self, incident: CanonicalIncident) -> SoapFields:
        """Map a validated incident and the backend credentials to wire fields."""
        return SoapFields(
            nom_usulog=self._config.user,
            pwd_usulog=self._config.password,
            nom_usuari=incident.contact_name,
            ema_usuari=incident.client_email,
            tex_messag=incident.description,
            asu_messag=incident.subject_name,
            tel_usuari=incident.phone_user,
            nit_transp=incident.nit_transp,
            id_project=self.resolve_project_id(incident),
        )
