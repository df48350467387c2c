"""Protocol definitions for pluggable adapters."""

from .chat import ChatProvider
from .ticketing import TicketingBackend

__all__ = ["ChatProvider", "TicketingBackend"]
