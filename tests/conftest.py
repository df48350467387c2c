"""Shared test fixtures for the OET Incident Gateway."""

from collections.abc import Iterator
from typing import Any

import pytest

from oet_incident_gateway.config.schema import (
    ChatwootConfig,
    FilesConfig,
    GatewayConfig,
    OETConfig,
)
from oet_incident_gateway.utils.metrics import MetricsRegistry

OET_URL = "https://oet.example.com/ws/consult_base.php"
CHATWOOT_URL = "https://chat.example.com"

# Smallest valid PNG signature plus padding, enough for content checks
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def soap_response(code: str | None, message: str | None = None) -> str:
    """Build a backend response body the way OET returns it."""
    parts = []
    if code is not None:
        parts.append(f'<code_resp xsi:type="xsd:string">{code}</code_resp>')
    if message is not None:
        parts.append(f'<msg_resp xsi:type="xsd:string">{message}</msg_resp>')
    return (
        '<?xml version="1.0" encoding="ISO-8859-1"?>'
        '<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://schemas.xmlsoap.org/soap/envelope/">'
        "<SOAP-ENV:Body><ns1:setSoportResponse><return>"
        + "".join(parts)
        + "</return></ns1:setSoportResponse></SOAP-ENV:Body></SOAP-ENV:Envelope>"
    )


@pytest.fixture(autouse=True)
def fresh_metrics() -> Iterator[None]:
    """Give every test an empty metrics registry."""
    MetricsRegistry.reset()
    yield
    MetricsRegistry.reset()


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    """Return an incident payload that passes every rule."""
    return {
        "nit_transp": "860069804-7",
        "contact_name": "Maria Lopez",
        "client_email": "maria.lopez@example.com",
        "description": "The vehicle tracking report does not load since this morning.",
        "subject_name": "Tracking report failure",
        "phone_user": "+57 300 123 4567",
        "cod_product": "42",
    }


@pytest.fixture
def oet_config() -> OETConfig:
    """Create a test OET configuration."""
    return OETConfig(wsdl_url=OET_URL, user="gateway", password="s3cret-pass", timeout=15.0)


@pytest.fixture
def chatwoot_config() -> ChatwootConfig:
    """Create a test Chatwoot configuration without retry delays."""
    return ChatwootConfig(
        base_url=CHATWOOT_URL,
        token="cw-test-token-123456",
        account_id="1",
        backoff_seconds=0.0,
    )


@pytest.fixture
def files_config() -> FilesConfig:
    """Create a test file limits configuration."""
    return FilesConfig()


@pytest.fixture
def gateway_config(
    oet_config: OETConfig,
    chatwoot_config: ChatwootConfig,
    files_config: FilesConfig,
) -> GatewayConfig:
    """Create a complete test configuration."""
    return GatewayConfig(oet=oet_config, chatwoot=chatwoot_config, files=files_config)


@pytest.fixture
def make_soap_response() -> Any:
    """Return the backend response body builder."""
    return soap_response


@pytest.fixture
def png_bytes() -> bytes:
    """Return a small PNG-looking body."""
    return PNG_BYTES
