"""Command line entry point: ``oet-incident-gateway`` / ``python -m oet_incident_gateway``.

Without a mode flag the HTTP API is served with uvicorn. ``--dry-run``,
``--health-check`` and ``--submit FILE`` run once and exit with 0 on success.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from oet_incident_gateway._version import __version__

if TYPE_CHECKING:
    from oet_incident_gateway.config.schema import GatewayConfig

log = structlog.get_logger()


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Bootstrap logging to stderr until the configuration has been read."""
    from oet_incident_gateway.utils.logging import LogLevel, configure_logging

    configure_logging(level=LogLevel.DEBUG if debug else LogLevel.INFO, log_format=log_format)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="oet-incident-gateway",
        description="OET Incident Gateway - chat incident reports to OET support tickets",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: read settings from the environment)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Load and validate configuration, then exit",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health checks and exit",
    )

    parser.add_argument(
        "--health-file",
        type=Path,
        metavar="PATH",
        help="With --health-check, also write the report as JSON to PATH",
    )

    parser.add_argument(
        "--submit",
        type=Path,
        metavar="FILE",
        help="Submit the incident JSON in FILE and print the result",
    )

    parser.add_argument("--host", help="Override server.host")
    parser.add_argument("--port", type=int, help="Override server.port")

    return parser.parse_args(argv)


def load_gateway_config(config_path: Path | None, debug: bool = False) -> "GatewayConfig":
    """Load configuration and reconfigure logging from it.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the configuration is invalid
    """
    from oet_incident_gateway.config.loader import load_config
    from oet_incident_gateway.utils.logging import configure_logging

    log.info("loading_configuration", path=str(config_path) if config_path else "environment")
    config = load_config(config_path)
    log.info("configuration_loaded")

    configure_logging(
        level="DEBUG" if debug else config.logging.level,
        log_format=config.logging.format,
        file_path=config.logging.file.path if config.logging.file.enabled else None,
        file_enabled=config.logging.file.enabled,
    )
    return config


async def run_health_check(config: "GatewayConfig", health_file: Path | None = None) -> int:
    """Run health checks; exit code 0 when healthy."""
    from oet_incident_gateway.utils.health import HealthChecker, write_health_file

    report = await HealthChecker(config).run_all_checks()
    print(json.dumps(report.to_dict(), indent=2))
    if health_file is not None:
        write_health_file(report, health_file)

    if report.healthy:
        log.info("health_check_passed", details=report.details)
        return 0
    log.error("health_check_failed", details=report.details)
    return 1


async def run_submit(config: "GatewayConfig", incident_path: Path) -> int:
    """Push one incident file through the pipeline and print the result body."""
    from oet_incident_gateway.core.orchestrator import create_orchestrator

    payload = json.loads(incident_path.read_text(encoding="utf-8"))
    outcome = await create_orchestrator(config).create_incident(payload)
    print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    return 0 if outcome.ok else 1


def serve(config: "GatewayConfig", host: str | None = None, port: int | None = None) -> None:
    """Serve the HTTP API until interrupted."""
    import uvicorn

    from oet_incident_gateway.api.app import create_app

    host = host or config.server.host
    port = port or config.server.port
    log.info("starting_server", host=host, port=port)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.format)
    log.info("starting_oet_incident_gateway", version=__version__)

    try:
        config = load_gateway_config(args.config, debug=args.debug)

        if args.dry_run:
            log.info("dry_run_mode_config_valid")
            return 0

        if args.health_check:
            return asyncio.run(run_health_check(config, args.health_file))

        if args.submit:
            return asyncio.run(run_submit(config, args.submit))

        serve(config, args.host, args.port)
        return 0

    except FileNotFoundError as e:
        log.error("file_not_found", error=str(e))
        return 1
    except ValueError as e:
        log.error("configuration_invalid", error=str(e))
        return 1
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0
    except Exception as e:
        log.exception("fatal_error", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
