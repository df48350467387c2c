"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    ChatwootConfig,
    FilesConfig,
    GatewayConfig,
    LoggingConfig,
    OETConfig,
    ServerConfig,
    ValidationConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "GatewayConfig",
    # Sections
    "OETConfig",
    "ChatwootConfig",
    "FilesConfig",
    "ValidationConfig",
    "ServerConfig",
    "LoggingConfig",
]
