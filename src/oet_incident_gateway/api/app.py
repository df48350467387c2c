"""Inbound HTTP interface.

Routes:
- ``POST /api/v1/integrations/oet/incidents``: run one incident through the
  pipeline. Backend outcomes, including classified errors, are returned with
  HTTP 200; rejected input gets HTTP 400.
- ``GET /health``: configuration health report (200 or 503).
- ``GET /metrics``: Prometheus text exposition.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from oet_incident_gateway._version import __version__
from oet_incident_gateway.core.orchestrator import create_orchestrator
from oet_incident_gateway.models.result import ValidationFailure
from oet_incident_gateway.utils.async_helpers import ConfigurationError
from oet_incident_gateway.utils.health import HealthChecker
from oet_incident_gateway.utils.metrics import get_metrics

if TYPE_CHECKING:
    from oet_incident_gateway.config.schema import GatewayConfig
    from oet_incident_gateway.core.orchestrator import IncidentOrchestrator

log = structlog.get_logger()

INCIDENTS_PATH = "/api/v1/integrations/oet/incidents"
REQUEST_ID_HEADER = "X-Request-ID"


def _validation_response(message: str, errors: tuple[str, ...]) -> JSONResponse:
    body = ValidationFailure(errors=errors, message=message).to_dict()
    return JSONResponse(status_code=400, content=body)


def create_app(
    config: GatewayConfig,
    orchestrator: IncidentOrchestrator | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration
        orchestrator: Pipeline to use; built from ``config`` when omitted

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(title="OET Incident Gateway", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.orchestrator = orchestrator or create_orchestrator(config)

    @app.post(INCIDENTS_PATH)
    async def create_incident(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            # An empty body reaches the pipeline as None and is rejected there
            payload: Any = json.loads(body) if body.strip() else None
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _validation_response(
                "Invalid incident data", ("Request body must be valid JSON",)
            )

        if payload is not None and not isinstance(payload, dict):
            return _validation_response(
                "Invalid incident data", ("Request body must be a JSON object",)
            )

        request_id = request.headers.get(REQUEST_ID_HEADER)
        try:
            outcome = await app.state.orchestrator.create_incident(payload, request_id=request_id)
        except ConfigurationError as e:
            log.error("incident_configuration_error", error=str(e))
            return JSONResponse(
                status_code=500,
                content={"status": "error", "code": "CONFIGURATION_ERROR", "message": str(e)},
            )

        status_code = 400 if isinstance(outcome, ValidationFailure) else 200
        return JSONResponse(status_code=status_code, content=outcome.to_dict())

    @app.get("/health")
    async def health() -> JSONResponse:
        report = await HealthChecker(app.state.config).run_all_checks()
        return JSONResponse(status_code=200 if report.healthy else 503, content=report.to_dict())

    @app.get("/metrics")
    async def metrics() -> PlainTextResponse:
        return PlainTextResponse(
            get_metrics().to_prometheus_format(),
            media_type="text/plain; version=0.0.4",
        )

    return app
