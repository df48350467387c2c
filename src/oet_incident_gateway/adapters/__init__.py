"""Concrete implementations of provider interfaces."""

from .chat.chatwoot import ChatwootAdapter
from .ticketing.oet_soap import OETSoapGateway

__all__ = [
    "ChatwootAdapter",
    "OETSoapGateway",
]
