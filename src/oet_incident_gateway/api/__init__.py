"""Inbound HTTP interface."""

from oet_incident_gateway.api.app import INCIDENTS_PATH, create_app

__all__ = ["INCIDENTS_PATH", "create_app"]
