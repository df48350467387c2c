"""OET SOAP ticketing backend adapter.

This module implements the TicketingBackend protocol for the OET
``setSoport`` operation. One POST per submission, no retry: a timed-out
submission is reported as retryable and left to the caller.
"""

from __future__ import annotations

import builtins
from collections.abc import Sequence

import httpx
import structlog

from ...config.schema import OETConfig
from ...core.soap_request_builder import to_attachment_items
from ...models.attachment import MaterializedImage, SoapFields
from ...models.result import ErrorKind, SubmissionFailure, SubmissionResult, SubmissionSuccess
from ...utils.async_helpers import ConfigurationError
from ...utils.metrics import Timer, get_metrics
from .envelope import SOAP_ACTION, build_envelope, parse_response

log = structlog.get_logger()


def is_timeout_error(error: BaseException) -> bool:
    """True for timeouts, including errors that only say so in their message."""
    if isinstance(error, (httpx.TimeoutException, builtins.TimeoutError)):
        return True
    return "timeout" in str(error).lower()


class OETSoapGateway:
    """OET adapter implementing the TicketingBackend protocol.

    Example:
        gateway = OETSoapGateway(config.oet)
        result = await gateway.submit(fields, images)
        print(result.to_dict())
    """

    def __init__(
        self,
        config: OETConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            config: OET endpoint, credentials and timeout.
            client: Shared HTTP client. If None, one is created per call.
        """
        self._config = config
        self._client = client

    def _timeout_failure(self) -> SubmissionFailure:
        return SubmissionFailure(
            error_kind=ErrorKind.OET_SERVICE_ERROR,
            message=(
                "Error communicating with OET service: "
                f"timeout after {self._config.timeout:g} seconds"
            ),
            retryable=True,
        )

    async def _post(self, url: str, envelope: str) -> str:
        headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": SOAP_ACTION,
        }
        content = envelope.encode("utf-8")
        if self._client is not None:
            response = await self._client.post(
                url, content=content, headers=headers, timeout=self._config.timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                response = await client.post(url, content=content, headers=headers)

        log.info("soap_response_received", status_code=response.status_code)
        response.raise_for_status()
        return response.text

    async def submit(
        self,
        fields: SoapFields,
        attachments: Sequence[MaterializedImage],
    ) -> SubmissionResult:
        """Create a support ticket in OET.

        Args:
            fields: Scalar ticket fields including credentials.
            attachments: Images to embed (may be empty).

        Returns:
            The classified backend response, or a retryable
            ``OET_SERVICE_ERROR`` failure when the request timed out.

        Raises:
            ConfigurationError: If ``oet.wsdl_url`` is not set.
            httpx.HTTPError: For transport failures other than timeouts.
        """
        url = self._config.wsdl_url
        if not url:
            raise ConfigurationError("OET endpoint is not configured (oet.wsdl_url)")

        envelope = build_envelope(fields, to_attachment_items(attachments))
        log.info("soap_request_start", attachment_count=len(attachments))

        try:
            with Timer(get_metrics().soap_request_duration):
                body = await self._post(url, envelope)
        except (httpx.HTTPError, builtins.TimeoutError) as e:
            if is_timeout_error(e):
                log.warning("soap_timeout", timeout=self._config.timeout, error=str(e))
                return self._timeout_failure()
            log.error("soap_transport_error", error_type=type(e).__name__, error=str(e))
            raise

        result = parse_response(body)
        if isinstance(result, SubmissionSuccess):
            log.info("soap_response_classified", outcome="ok", ticket_id=result.ticket_id)
        else:
            log.warning(
                "soap_response_classified",
                outcome=result.error_kind.value,
                backend_code=result.backend_code,
            )
        return result
