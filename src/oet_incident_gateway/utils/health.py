"""Readiness checks for the gateway.

The checks look at configuration only; they never call the ticketing
backend or the chat platform. A missing backend endpoint or credential
makes the gateway unhealthy because no ticket can be created without it.
Missing chat settings only disable attachments, so they degrade.
"""

from __future__ import annotations

import json
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from oet_incident_gateway.utils.security import mask_config_value

if TYPE_CHECKING:
    from oet_incident_gateway.config.schema import GatewayConfig

log = structlog.get_logger()


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    """Outcome of one named check."""

    name: str
    status: HealthStatus
    message: str
    latency_ms: float | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "latency_ms": self.latency_ms,
            "details": self.details,
        }


@dataclass
class HealthReport:
    """Aggregate of all checks, served by ``GET /health`` and ``--health-check``."""

    healthy: bool
    status: HealthStatus
    timestamp: datetime
    checks: list[CheckResult]
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": [check.to_dict() for check in self.checks],
            "details": self.details,
        }


def overall_status(checks: list[CheckResult]) -> HealthStatus:
    """Worst status wins; an empty list counts as healthy."""
    statuses = {check.status for check in checks}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class HealthChecker:
    """Runs the configuration checks and builds a :class:`HealthReport`.

    Example:
        report = await HealthChecker(config).run_all_checks()
        status_code = 200 if report.healthy else 503
    """

    def __init__(self, config: GatewayConfig) -> None:
        self._config = config
        self._checks: tuple[tuple[str, Callable[[], CheckResult]], ...] = (
            ("config", self._check_config),
            ("ticketing_backend", self._check_ticketing_backend),
            ("chat_platform", self._check_chat_platform),
        )

    async def run_all_checks(self) -> HealthReport:
        timestamp = datetime.now(UTC)
        checks = [self._timed(name, check) for name, check in self._checks]

        status = overall_status(checks)
        counts = Counter(check.status for check in checks)
        report = HealthReport(
            healthy=status is not HealthStatus.UNHEALTHY,
            status=status,
            timestamp=timestamp,
            checks=checks,
            details={
                "total_checks": len(checks),
                "healthy_checks": counts[HealthStatus.HEALTHY],
                "degraded_checks": counts[HealthStatus.DEGRADED],
                "unhealthy_checks": counts[HealthStatus.UNHEALTHY],
            },
        )

        log.info("health_check_complete", status=status.value, checks_run=len(checks))
        return report

    @staticmethod
    def _timed(name: str, check: Callable[[], CheckResult]) -> CheckResult:
        started = time.perf_counter()
        try:
            result = check()
        except Exception as e:
            log.exception("health_check_error", check=name)
            result = CheckResult(name, HealthStatus.UNHEALTHY, f"Check raised: {e}")
        result.latency_ms = round((time.perf_counter() - started) * 1000, 3)
        return result

    def _check_config(self) -> CheckResult:
        from oet_incident_gateway.config.loader import validate_config

        try:
            validate_config(self._config)
        except ValueError as e:
            return CheckResult("config", HealthStatus.UNHEALTHY, f"Configuration error: {e}")

        files = self._config.files
        return CheckResult(
            "config",
            HealthStatus.HEALTHY,
            "Configuration valid",
            details={
                "max_file_size": files.max_file_size,
                "max_total_size": files.max_total_size,
                "max_files_count": files.max_files_count,
                "enforce_nit_checksum": self._config.validation.enforce_nit_checksum,
            },
        )

    def _check_ticketing_backend(self) -> CheckResult:
        oet = self._config.oet
        if not oet.wsdl_url:
            message = "OET endpoint (oet.wsdl_url) not configured"
        elif not (oet.user and oet.password):
            message = "OET credentials not configured"
        else:
            return CheckResult(
                "ticketing_backend",
                HealthStatus.HEALTHY,
                "OET endpoint configured",
                details={"endpoint": oet.wsdl_url, "timeout": oet.timeout},
            )
        return CheckResult("ticketing_backend", HealthStatus.UNHEALTHY, message)

    def _check_chat_platform(self) -> CheckResult:
        chatwoot = self._config.chatwoot
        if not (chatwoot.base_url and chatwoot.token):
            return CheckResult(
                "chat_platform",
                HealthStatus.DEGRADED,
                "Chatwoot not configured, attachments disabled",
            )
        return CheckResult(
            "chat_platform",
            HealthStatus.HEALTHY,
            "Chatwoot configured",
            details={
                "base_url": chatwoot.base_url,
                "account_id": chatwoot.account_id,
                "token": mask_config_value("token", chatwoot.token),
                "token_present": True,
            },
        )


def write_health_file(report: HealthReport, path: Path) -> None:
    """Write the report as JSON for file-based liveness checks.

    Write errors are logged and not raised.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.to_dict(), indent=2))
    except OSError as e:
        log.error("health_file_write_error", path=str(path), error=str(e))
    else:
        log.debug("health_file_written", path=str(path))
