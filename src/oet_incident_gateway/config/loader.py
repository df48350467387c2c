"""Load the gateway configuration from YAML or from the environment.

YAML files may reference environment variables as ``${NAME}`` or, with a
fallback, ``${NAME:-default}``. Secrets such as ``oet.password`` and
``chatwoot.token`` are normally provided this way.
"""

import os
import re
from pathlib import Path

import yaml

from .schema import GatewayConfig

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-default}`` references in ``text``.

    Raises:
        ValueError: If a variable without a default is not set.
    """

    def expand(match: re.Match[str]) -> str:
        name = match.group("name")
        value = os.environ.get(name, match.group("default"))
        if value is None:
            raise ValueError(f"Environment variable {name} not found")
        return value

    return _ENV_REFERENCE.sub(expand, text)


def load_config(path: Path | None = None) -> GatewayConfig:
    """Build a validated :class:`GatewayConfig`.

    With ``path`` the YAML file is read, expanded and validated. Without it
    every setting comes from ``__``-nested environment variables
    (``OET__WSDL_URL``, ``CHATWOOT__TOKEN``) and an optional ``.env`` file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On a missing variable or an inconsistent configuration.
        ValidationError: If a value fails the schema.
    """
    if path is None:
        config = GatewayConfig()
    else:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        document = yaml.safe_load(substitute_env_vars(path.read_text(encoding="utf-8")))
        config = GatewayConfig.model_validate(document or {})

    validate_config(config)
    return config


def validate_config(config: GatewayConfig) -> None:
    """Check rules spanning several fields.

    Endpoints and credentials may stay empty at load time; the adapters
    report them when first used.

    Raises:
        ValueError: If the configuration is inconsistent.
    """
    if config.files.max_total_size < config.files.max_file_size:
        raise ValueError("files.max_total_size must be at least files.max_file_size")

    if config.oet.wsdl_url and not config.oet.user:
        raise ValueError("oet.user is required when oet.wsdl_url is set")

    if config.chatwoot.token and not config.chatwoot.base_url:
        raise ValueError("chatwoot.base_url is required when chatwoot.token is set")
