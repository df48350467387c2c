"""OET Incident Gateway: chat-originated incident reports to OET support tickets."""

from oet_incident_gateway._version import __version__

__all__ = ["__version__"]
