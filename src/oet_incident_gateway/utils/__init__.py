"""Cross-cutting helpers for the gateway.

Errors and retries (``async_helpers``), structured logging with redaction
(``logging``, ``security``), readiness checks (``health``) and in-process
Prometheus metrics (``metrics``).
"""

from oet_incident_gateway.utils.async_helpers import (
    AuthError,
    ChatPlatformError,
    ConfigurationError,
    GatewayError,
    ImageDownloadError,
    NotFoundError,
    ServiceError,
)
from oet_incident_gateway.utils.health import (
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from oet_incident_gateway.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from oet_incident_gateway.utils.metrics import (
    Counter,
    Gauge,
    Histogram,
    MetricsRegistry,
    Timer,
    get_metrics,
)
from oet_incident_gateway.utils.security import (
    RedactionError,
    SecretRedactor,
)

__all__ = [
    # Errors
    "AuthError",
    "ChatPlatformError",
    "ConfigurationError",
    # Metrics
    "Counter",
    "Gauge",
    "GatewayError",
    # Health
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    "Histogram",
    "ImageDownloadError",
    # Logging
    "LogFormat",
    "LogLevel",
    "MetricsRegistry",
    "NotFoundError",
    # Security
    "RedactionError",
    "SecretRedactor",
    "ServiceError",
    "Timer",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_metrics",
    "unbind_context",
]
