"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from oet_incident_gateway.config.loader import load_config, substitute_env_vars, validate_config
from oet_incident_gateway.config.schema import (
    MIB,
    ChatwootConfig,
    FilesConfig,
    GatewayConfig,
    OETConfig,
    ServerConfig,
)


class TestSubstituteEnvVars:
    """Test ${VAR} expansion in YAML text."""

    def test_substitutes_password(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OET_PASSWORD", "s3cret-pass")
        assert substitute_env_vars("password: ${OET_PASSWORD}") == "password: s3cret-pass"

    def test_substitutes_several(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CW_HOST", "chat.example.com")
        monkeypatch.setenv("CW_ACCOUNT", "3")
        result = substitute_env_vars("https://${CW_HOST}/api/v1/accounts/${CW_ACCOUNT}")
        assert result == "https://chat.example.com/api/v1/accounts/3"

    def test_missing_env_var_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MISSING", raising=False)
        with pytest.raises(ValueError, match="Environment variable MISSING not found"):
            substitute_env_vars("Value is ${MISSING}")

    def test_default_used_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OET_TIMEOUT", raising=False)
        assert substitute_env_vars("timeout: ${OET_TIMEOUT:-15}") == "timeout: 15"

    def test_set_value_beats_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OET_TIMEOUT", "30")
        assert substitute_env_vars("timeout: ${OET_TIMEOUT:-15}") == "timeout: 30"

    def test_empty_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CHATWOOT_TOKEN", raising=False)
        assert substitute_env_vars("token: '${CHATWOOT_TOKEN:-}'") == "token: ''"

    def test_no_substitution_needed(self) -> None:
        assert substitute_env_vars("plain text without vars") == "plain text without vars"


class TestOETConfig:
    """Test OETConfig validation."""

    def test_defaults(self):
        """Test that an empty section is allowed until first use."""
        config = OETConfig()
        assert config.wsdl_url == ""
        assert config.timeout == 15.0
        assert config.default_project_id is None

    def test_trailing_slash_stripped(self):
        config = OETConfig(wsdl_url="https://oet.example.com/ws/")
        assert config.wsdl_url == "https://oet.example.com/ws"

    @pytest.mark.parametrize("url", ["oet.example.com/ws", "ftp://oet.example.com", "http://"])
    def test_invalid_url_rejected(self, url):
        with pytest.raises(ValidationError, match="wsdl_url must be an absolute http"):
            OETConfig(wsdl_url=url)

    def test_default_project_id_digits_only(self):
        assert OETConfig(default_project_id="12").default_project_id == "12"
        with pytest.raises(ValidationError, match="only digits"):
            OETConfig(default_project_id="P-12")

    def test_timeout_range(self):
        with pytest.raises(ValidationError):
            OETConfig(timeout=0)
        with pytest.raises(ValidationError):
            OETConfig(timeout=301)


class TestChatwootConfig:
    """Test ChatwootConfig validation."""

    def test_defaults(self):
        config = ChatwootConfig()
        assert config.account_id == "1"
        assert config.max_attempts == 3
        assert config.backoff_seconds == 2.0
        assert config.public_host is None

    def test_invalid_base_url_rejected(self):
        with pytest.raises(ValidationError, match="base_url must be an absolute http"):
            ChatwootConfig(base_url="chat.example.com")

    def test_max_attempts_range(self):
        ChatwootConfig(max_attempts=1)
        with pytest.raises(ValidationError):
            ChatwootConfig(max_attempts=0)


class TestFilesConfig:
    """Test image limit defaults."""

    def test_defaults(self):
        config = FilesConfig()
        assert config.max_file_size == 5 * MIB
        assert config.max_total_size == 25 * MIB
        assert config.max_files_count == 10
        assert config.download_timeout == 60.0
        assert config.max_redirects == 5

    def test_max_files_count_range(self):
        with pytest.raises(ValidationError):
            FilesConfig(max_files_count=0)
        with pytest.raises(ValidationError):
            FilesConfig(max_files_count=101)


class TestServerConfig:
    def test_defaults(self):
        config = ServerConfig()
        assert config.port == 3000
        assert config.allowed_origins == ["*"]


class TestLoadConfig:
    """Test configuration loading from YAML and the environment."""

    def test_load_valid_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading a valid configuration file."""
        monkeypatch.setenv("TEST_OET_PASSWORD", "s3cret-pass")
        monkeypatch.setenv("TEST_CHATWOOT_TOKEN", "cw-token-123456")

        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            """
oet:
  wsdl_url: https://oet.example.com/ws/consult_base.php
  user: gateway
  password: ${TEST_OET_PASSWORD}
  default_project_id: "7"

chatwoot:
  base_url: https://chat.example.com/
  token: ${TEST_CHATWOOT_TOKEN}
  account_id: "3"

files:
  max_files_count: 5

validation:
  enforce_nit_checksum: true
"""
        )

        config = load_config(config_file)

        assert config.oet.password == "s3cret-pass"
        assert config.oet.default_project_id == "7"
        assert config.chatwoot.base_url == "https://chat.example.com"
        assert config.chatwoot.token == "cw-token-123456"
        assert config.chatwoot.account_id == "3"
        assert config.files.max_files_count == 5
        assert config.validation.enforce_nit_checksum is True

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        config = load_config(config_file)

        assert config.oet.wsdl_url == ""
        assert config.server.port == 3000

    def test_load_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test nested settings from double-underscore variables."""
        monkeypatch.setenv("OET__WSDL_URL", "https://oet.example.com/ws")
        monkeypatch.setenv("OET__USER", "gateway")
        monkeypatch.setenv("CHATWOOT__PUBLIC_HOST", "chat.example.com")
        monkeypatch.setenv("SERVER__PORT", "8080")

        config = load_config()

        assert config.oet.wsdl_url == "https://oet.example.com/ws"
        assert config.oet.user == "gateway"
        assert config.chatwoot.public_host == "chat.example.com"
        assert config.server.port == 8080

    def test_load_config_missing_file(self):
        """Test that loading non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            load_config(Path("/nonexistent/config.yaml"))

    def test_load_config_missing_env_var(self, tmp_path: Path) -> None:
        """Test that missing environment variable raises error."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("oet:\n  password: ${MISSING_VAR}\n")

        with pytest.raises(ValueError, match="Environment variable MISSING_VAR not found"):
            load_config(config_file)


class TestValidateConfig:
    """Test cross-field configuration validation."""

    def test_total_size_below_file_size(self):
        config = GatewayConfig(files=FilesConfig(max_file_size=10 * MIB, max_total_size=5 * MIB))

        with pytest.raises(ValueError, match="max_total_size"):
            validate_config(config)

    def test_endpoint_without_user(self):
        config = GatewayConfig(oet=OETConfig(wsdl_url="https://oet.example.com/ws"))

        with pytest.raises(ValueError, match="oet.user is required"):
            validate_config(config)

    def test_token_without_base_url(self):
        config = GatewayConfig(chatwoot=ChatwootConfig(token="cw-token-123456"))

        with pytest.raises(ValueError, match="chatwoot.base_url is required"):
            validate_config(config)

    def test_valid_config_passes(self, gateway_config):
        """Test that valid configuration passes validation."""
        # Should not raise
        validate_config(gateway_config)
