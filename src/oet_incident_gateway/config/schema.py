"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


def _check_optional_url(value: str, field_name: str) -> str:
    """Validate a URL that may be left empty until use."""
    from ..utils.security import validate_http_url

    value = value.strip()
    if value and not validate_http_url(value):
        raise ValueError(f"{field_name} must be an absolute http(s) URL, got: {value}")
    return value.rstrip("/")


class OETConfig(BaseModel):
    """Ticketing backend (OET SOAP service) configuration."""

    wsdl_url: str = ""
    user: str = ""
    password: str = ""
    timeout: float = Field(15.0, gt=0, le=300)
    default_project_id: str | None = None

    @field_validator("wsdl_url")
    @classmethod
    def validate_wsdl_url(cls, v: str) -> str:
        """Validate the SOAP endpoint format."""
        return _check_optional_url(v, "wsdl_url")

    @field_validator("default_project_id")
    @classmethod
    def validate_default_project_id(cls, v: str | None) -> str | None:
        """Project ids are numeric strings."""
        if v is not None and not v.isdigit():
            raise ValueError("default_project_id must contain only digits")
        return v


class ChatwootConfig(BaseModel):
    """Chat platform (Chatwoot) configuration."""

    base_url: str = ""
    token: str = ""
    account_id: str = "1"
    timeout: float = Field(30.0, gt=0, le=300)
    max_attempts: int = Field(3, ge=1, le=10)
    backoff_seconds: float = Field(2.0, ge=0.0, le=60.0)
    public_host: str | None = None

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the Chatwoot API base URL."""
        return _check_optional_url(v, "base_url")


class FilesConfig(BaseModel):
    """Image materialization limits."""

    max_file_size: int = Field(5 * MIB, ge=1)
    max_total_size: int = Field(25 * MIB, ge=1)
    max_files_count: int = Field(10, ge=1, le=100)
    download_timeout: float = Field(60.0, gt=0, le=600)
    max_redirects: int = Field(5, ge=0, le=20)


class ValidationConfig(BaseModel):
    """Incident validation policy."""

    enforce_nit_checksum: bool = False


class ServerConfig(BaseModel):
    """Inbound HTTP server configuration."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(3000, ge=1, le=65535)
    allowed_origins: list[str] = ["*"]


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("/var/log/oet-incident-gateway/gateway.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: FileLoggingConfig = FileLoggingConfig()


class GatewayConfig(BaseSettings):
    """Root configuration for the OET Incident Gateway."""

    oet: OETConfig = OETConfig()
    chatwoot: ChatwootConfig = ChatwootConfig()
    files: FilesConfig = FilesConfig()
    validation: ValidationConfig = ValidationConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )
