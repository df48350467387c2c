"""Tests for the OET SOAP ticketing adapter."""

from collections.abc import Callable

import httpx
import pytest

from oet_incident_gateway.adapters.ticketing.oet_soap import OETSoapGateway, is_timeout_error
from oet_incident_gateway.config.schema import OETConfig
from oet_incident_gateway.models.attachment import MaterializedImage, SoapFields
from oet_incident_gateway.models.result import ErrorKind, SubmissionFailure, SubmissionSuccess
from oet_incident_gateway.utils.async_helpers import ConfigurationError
from oet_incident_gateway.utils.metrics import get_metrics

Handler = Callable[[httpx.Request], httpx.Response]
ResponseBuilder = Callable[..., str]


@pytest.fixture
def fields() -> SoapFields:
    return SoapFields(
        nom_usulog="gateway",
        pwd_usulog="s3cret-pass",
        nom_usuari="Maria Lopez",
        ema_usuari="maria.lopez@example.com",
        tex_messag="The vehicle tracking report does not load.",
        asu_messag="Tracking report failure",
        tel_usuari="3001234567",
        nit_transp="860069804-7",
        id_project="42",
    )


def make_gateway(config: OETConfig, handler: Handler) -> OETSoapGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OETSoapGateway(config, client=client)


class TestSubmit:
    """Test one submission round trip."""

    async def test_success(
        self,
        oet_config: OETConfig,
        fields: SoapFields,
        make_soap_response: ResponseBuilder,
    ) -> None:
        """Test request shape and classified success."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=make_soap_response("1000", "La Tarea 314245"))

        gateway = make_gateway(oet_config, handler)
        image = MaterializedImage(
            filename="a.png",
            content_type="image/png",
            data_uri="data:image/png;base64,AAAA",
            size=3,
            source_url="https://img.example.com/a.png",
        )

        result = await gateway.submit(fields, [image])

        assert isinstance(result, SubmissionSuccess)
        assert result.ticket_id == "314245"

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == oet_config.wsdl_url
        assert request.headers["Content-Type"] == "text/xml; charset=utf-8"
        assert request.headers["SOAPAction"] == "urn:consult_base#setSoport"
        body = request.content.decode("utf-8")
        assert "<nom_filexx>a.png</nom_filexx>" in body
        assert get_metrics().soap_request_duration.get_stats()["count"] == 1

    async def test_business_failure_is_value(
        self,
        oet_config: OETConfig,
        fields: SoapFields,
        make_soap_response: ResponseBuilder,
    ) -> None:
        gateway = make_gateway(
            oet_config,
            lambda r: httpx.Response(200, text=make_soap_response("1002", "Usuario invalido")),
        )

        result = await gateway.submit(fields, [])

        assert isinstance(result, SubmissionFailure)
        assert result.error_kind == ErrorKind.OET_AUTH_ERROR

    async def test_timeout_is_retryable_failure(
        self, oet_config: OETConfig, fields: SoapFields
    ) -> None:
        """Test that a timeout becomes a retryable service error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = make_gateway(oet_config, handler)

        result = await gateway.submit(fields, [])

        assert isinstance(result, SubmissionFailure)
        assert result.error_kind == ErrorKind.OET_SERVICE_ERROR
        assert result.retryable is True
        assert result.backend_code is None
        assert result.to_dict() == {
            "status": "error",
            "code": "OET_SERVICE_ERROR",
            "message": "Error communicating with OET service: timeout after 15 seconds",
            "retry_available": True,
        }

    async def test_connection_error_propagates(
        self, oet_config: OETConfig, fields: SoapFields
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway = make_gateway(oet_config, handler)

        with pytest.raises(httpx.ConnectError):
            await gateway.submit(fields, [])

    async def test_http_error_status_propagates(
        self, oet_config: OETConfig, fields: SoapFields
    ) -> None:
        gateway = make_gateway(oet_config, lambda r: httpx.Response(500, text="boom"))

        with pytest.raises(httpx.HTTPStatusError):
            await gateway.submit(fields, [])

    async def test_missing_endpoint(self, fields: SoapFields) -> None:
        """Test that an unset endpoint fails before any request."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        gateway = make_gateway(OETConfig(), handler)

        with pytest.raises(ConfigurationError):
            await gateway.submit(fields, [])


class TestIsTimeoutError:
    """Test timeout detection."""

    def test_httpx_timeout(self) -> None:
        assert is_timeout_error(httpx.ConnectTimeout("slow"))

    def test_builtin_timeout(self) -> None:
        assert is_timeout_error(TimeoutError())

    def test_message_mentions_timeout(self) -> None:
        assert is_timeout_error(httpx.RemoteProtocolError("Gateway Timeout"))

    def test_other_error(self) -> None:
        assert not is_timeout_error(httpx.ConnectError("refused"))
