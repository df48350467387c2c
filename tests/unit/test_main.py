"""Tests for the command line entry point."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from oet_incident_gateway.__main__ import main, parse_args
from oet_incident_gateway.models.result import SubmissionSuccess, ValidationFailure

CONFIG_YAML = """
oet:
  wsdl_url: https://oet.example.com/ws/consult_base.php
  user: gateway
  password: s3cret-pass
logging:
  format: console
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args([])

        assert args.config is None
        assert args.debug is False
        assert args.dry_run is False
        assert args.submit is None
        assert args.port is None

    def test_overrides(self) -> None:
        args = parse_args(["-c", "gw.yaml", "--port", "8080", "--submit", "incident.json"])

        assert args.config == Path("gw.yaml")
        assert args.port == 8080
        assert args.submit == Path("incident.json")


class TestMain:
    """Test the one-shot modes."""

    def test_dry_run(self, config_file: Path) -> None:
        assert main(["-c", str(config_file), "--dry-run"]) == 0

    def test_missing_config_file(self, tmp_path: Path) -> None:
        assert main(["-c", str(tmp_path / "missing.yaml"), "--dry-run"]) == 1

    def test_invalid_config(self, tmp_path: Path) -> None:
        """Test that cross-field errors exit non-zero."""
        path = tmp_path / "config.yaml"
        path.write_text("oet:\n  wsdl_url: https://oet.example.com/ws\n")

        assert main(["-c", str(path), "--dry-run"]) == 1

    def test_health_check(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that a configured backend without chat settings is healthy."""
        assert main(["-c", str(config_file), "--health-check"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["status"] == "degraded"

    def test_submit(
        self,
        config_file: Path,
        tmp_path: Path,
        valid_payload: dict[str, str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        incident = tmp_path / "incident.json"
        incident.write_text(json.dumps(valid_payload))
        orchestrator = MagicMock()
        orchestrator.create_incident = AsyncMock(return_value=SubmissionSuccess(ticket_id="314245"))

        with patch(
            "oet_incident_gateway.core.orchestrator.create_orchestrator",
            return_value=orchestrator,
        ):
            code = main(["-c", str(config_file), "--submit", str(incident)])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"status": "ok", "task_id": "314245"}
        orchestrator.create_incident.assert_awaited_once_with(valid_payload)

    def test_submit_rejected(self, config_file: Path, tmp_path: Path) -> None:
        incident = tmp_path / "incident.json"
        incident.write_text("{}")
        orchestrator = MagicMock()
        orchestrator.create_incident = AsyncMock(
            return_value=ValidationFailure(errors=("Request body is required",))
        )

        with patch(
            "oet_incident_gateway.core.orchestrator.create_orchestrator",
            return_value=orchestrator,
        ):
            assert main(["-c", str(config_file), "--submit", str(incident)]) == 1

    def test_serve_uses_overrides(self, config_file: Path) -> None:
        with patch("uvicorn.run") as mock_run:
            assert main(["-c", str(config_file), "--host", "127.0.0.1", "--port", "8080"]) == 0

        kwargs = mock_run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 8080

    def test_health_file(self, config_file: Path, tmp_path: Path) -> None:
        health_file = tmp_path / "health.json"

        args = ["-c", str(config_file), "--health-check", "--health-file", str(health_file)]

        assert main(args) == 0
        assert json.loads(health_file.read_text())["healthy"] is True
