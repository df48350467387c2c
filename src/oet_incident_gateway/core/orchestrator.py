"""Incident submission pipeline.

This module implements the IncidentOrchestrator that sequences one request:
validate, fetch conversation attachments (best-effort), materialize images
(best-effort), build the SOAP fields and submit them to the ticketing backend.

Best-effort steps are private helpers that log and return an empty list
instead of raising, so a chat platform outage only costs the attachments.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from oet_incident_gateway.core.image_materializer import ImageMaterializer, decode_data_uri
from oet_incident_gateway.core.incident_validator import IncidentValidator
from oet_incident_gateway.core.soap_request_builder import SoapRequestBuilder
from oet_incident_gateway.models.attachment import MaterializedImage
from oet_incident_gateway.models.result import (
    IncidentOutcome,
    ValidationFailure,
    outcome_code,
)
from oet_incident_gateway.utils.logging import bind_context, unbind_context
from oet_incident_gateway.utils.metrics import get_metrics

if TYPE_CHECKING:
    from oet_incident_gateway.config.schema import FilesConfig, GatewayConfig
    from oet_incident_gateway.interfaces.chat import ChatProvider
    from oet_incident_gateway.interfaces.ticketing import TicketingBackend

log = structlog.get_logger()

EMPTY_BODY_MESSAGE = "Request body is required"


class IncidentOrchestrator:
    """Runs the incident pipeline for one request at a time.

    The orchestrator holds no per-request state; concurrent calls share only
    the read-only collaborators passed at construction.

    Example:
        orchestrator = create_orchestrator(config)
        outcome = await orchestrator.create_incident(payload)
        return outcome.to_dict()
    """

    def __init__(
        self,
        validator: IncidentValidator,
        chat: ChatProvider,
        materializer: ImageMaterializer,
        builder: SoapRequestBuilder,
        backend: TicketingBackend,
        files_config: FilesConfig | None = None,
    ) -> None:
        self._validator = validator
        self._chat = chat
        self._materializer = materializer
        self._builder = builder
        self._backend = backend
        self._files_config = files_config

    async def create_incident(
        self,
        raw: Any,
        request_id: str | None = None,
    ) -> IncidentOutcome:
        """Validate, enrich and submit one incident.

        Args:
            raw: Decoded JSON body.
            request_id: Correlation id bound into the log context; generated
                when absent.

        Returns:
            ValidationFailure for rejected input, otherwise the backend result
            verbatim.

        Raises:
            ConfigurationError: If the ticketing endpoint is not configured.
            httpx.HTTPError: For unclassified transport failures on submission.
        """
        metrics = get_metrics()
        request_id = request_id or uuid.uuid4().hex
        bind_context(request_id=request_id)
        metrics.incidents_received.inc()
        metrics.active_requests.inc()
        start = time.perf_counter()

        try:
            outcome = await self._run(raw)
        except Exception as e:
            log.error("incident_failed", error_type=type(e).__name__, error=str(e))
            raise
        else:
            code = outcome_code(outcome)
            metrics.incidents_by_outcome.inc(labels={"code": code})
            if isinstance(outcome, ValidationFailure):
                metrics.validation_failures.inc()
            log.info("incident_completed", outcome=code)
            return outcome
        finally:
            metrics.active_requests.dec()
            metrics.incident_duration.observe(time.perf_counter() - start)
            unbind_context("request_id")

    async def _run(self, raw: Any) -> IncidentOutcome:
        if not raw:
            log.info("incident_rejected", reason="empty_body")
            return ValidationFailure(errors=(EMPTY_BODY_MESSAGE,), message=EMPTY_BODY_MESSAGE)

        validation = self._validator.validate(raw)
        if not validation.ok or validation.value is None:
            return ValidationFailure(errors=validation.errors)

        incident = validation.value
        log.info(
            "incident_received",
            conversation_id=incident.conversation_id,
            has_inline_file=incident.files_urls is not None,
        )

        images: list[MaterializedImage] = []
        if incident.conversation_id:
            urls = await self._fetch_image_urls(incident.conversation_id)
            if urls:
                images = await self._materialize(urls)

        if incident.files_urls:
            images.extend(self._decode_inline_file(incident.files_urls, len(images)))

        fields = self._builder.build(incident)
        return await self._backend.submit(fields, images)

    async def _fetch_image_urls(self, conversation_id: str) -> list[str]:
        """Best-effort attachment lookup; any failure yields no URLs."""
        try:
            return await self._chat.fetch_image_urls(conversation_id)
        except Exception as e:
            log.warning(
                "attachment_fetch_skipped",
                conversation_id=conversation_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

    async def _materialize(self, urls: list[str]) -> list[MaterializedImage]:
        """Best-effort materialization; a materializer crash yields no images."""
        try:
            return await self._materializer.materialize(urls)
        except Exception as e:
            log.warning(
                "image_materialization_skipped",
                url_count=len(urls),
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

    def _decode_inline_file(self, data_uri: str, existing: int) -> list[MaterializedImage]:
        """Best-effort decoding of the inline ``files_urls`` data URI."""
        files = self._files_config
        if files is not None and existing >= files.max_files_count:
            log.warning("inline_file_skipped", reason="max_files_count")
            return []

        try:
            if files is not None:
                image = decode_data_uri(data_uri, existing + 1, files.max_file_size)
            else:
                image = decode_data_uri(data_uri, existing + 1)
        except Exception as e:
            log.warning("inline_file_skipped", error_type=type(e).__name__, error=str(e))
            return []
        return [image]


def create_orchestrator(
    config: GatewayConfig,
    client: httpx.AsyncClient | None = None,
) -> IncidentOrchestrator:
    """Factory function to create an IncidentOrchestrator with all dependencies.

    Args:
        config: Application configuration
        client: Optional HTTP client shared by all adapters

    Returns:
        Configured IncidentOrchestrator instance
    """
    # Import here to avoid circular imports
    from oet_incident_gateway.adapters.chat.chatwoot import ChatwootAdapter
    from oet_incident_gateway.adapters.ticketing.oet_soap import OETSoapGateway

    return IncidentOrchestrator(
        validator=IncidentValidator(
            enforce_nit_checksum=config.validation.enforce_nit_checksum,
        ),
        chat=ChatwootAdapter(config.chatwoot, client=client),
        materializer=ImageMaterializer(config.files, client=client),
        builder=SoapRequestBuilder(config.oet),
        backend=OETSoapGateway(config.oet, client=client),
        files_config=config.files,
    )
