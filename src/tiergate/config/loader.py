"""Configuration loading and management for tiergate.

This module provides functions for loading, creating, and validating
tiergate configuration files.

Functions:
    load_config: Load configuration from ~/.tiergate/config.yaml
    load_credentials: Load credentials from ~/.tiergate/credentials.yaml
    create_default_config: Create default configuration files
    ensure_config_dir: Ensure ~/.tiergate/ directory exists
    resolve_api_key: Find a provider's key in credentials or the environment
"""

import os
from pathlib import Path
import stat
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
import yaml

# Load .env file from current directory and ~/.tiergate/
load_dotenv()
load_dotenv(Path.home() / ".tiergate" / ".env")

from tiergate.config.models import (  # noqa: E402
    CredentialsConfig,
    TiergateConfig,
    get_config_dir,
    get_default_config,
    get_default_credentials,
)
from tiergate.core.errors import ConfigError  # noqa: E402
from tiergate.observability.logging import get_logger  # noqa: E402

log = get_logger(__name__)

_PLACEHOLDER_PREFIX = "YOUR_"


def ensure_config_dir() -> Path:
    """Ensure the configuration directory exists.

    Creates ~/.tiergate/ and its logs/ subdirectory if they don't exist.

    Returns:
        Path to the configuration directory.
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "logs").mkdir(exist_ok=True)
    return config_dir


def _set_secure_permissions(file_path: Path) -> None:
    """Set owner read/write only (chmod 600) on a file."""
    os.chmod(file_path, stat.S_IRUSR | stat.S_IWUSR)


def _write_yaml(path: Path, model: BaseModel) -> None:
    with path.open("w") as f:
        yaml.dump(
            model.model_dump(mode="json", exclude_none=True),
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )


def _format_validation_errors(e: PydanticValidationError) -> str:
    lines = []
    for error in e.errors():
        loc = ".".join(str(x) for x in error["loc"])
        lines.append(f"  - {loc}: {error['msg']}")
    return "\n".join(lines)


def _read_yaml(path: Path, kind: str) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(
            f"{kind} file not found: {path}. "
            "Run `tiergate config init` to create default configuration.",
            config_file=str(path),
        )
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse {kind.lower()} file: {e}",
            config_file=str(path),
            details={"yaml_error": str(e)},
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"{kind} file must contain a mapping: {path}",
            config_file=str(path),
        )
    return data


def create_default_config(
    config_dir: Path | None = None,
    *,
    overwrite: bool = False,
) -> tuple[Path, Path]:
    """Create default configuration files.

    Creates config.yaml and credentials.yaml in the specified directory.
    credentials.yaml is created with chmod 600.

    Args:
        config_dir: Directory to create files in. Defaults to ~/.tiergate/
        overwrite: If True, overwrite existing files.

    Returns:
        Tuple of (config_path, credentials_path).

    Raises:
        ConfigError: If files exist and overwrite=False.
    """
    if config_dir is None:
        config_dir = ensure_config_dir()
    else:
        config_dir.mkdir(parents=True, exist_ok=True)

    config_path = config_dir / "config.yaml"
    credentials_path = config_dir / "credentials.yaml"

    if not overwrite:
        for path in (config_path, credentials_path):
            if path.exists():
                raise ConfigError(
                    f"Configuration file already exists: {path}",
                    config_file=str(path),
                )

    _write_yaml(config_path, get_default_config())
    _write_yaml(credentials_path, get_default_credentials())
    _set_secure_permissions(credentials_path)

    log.info("config.files.created", config_dir=str(config_dir))
    return config_path, credentials_path


def load_config(config_path: Path | None = None) -> TiergateConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to ~/.tiergate/config.yaml.

    Returns:
        Validated TiergateConfig instance.

    Raises:
        ConfigError: If file doesn't exist, is malformed, or fails validation.
    """
    if config_path is None:
        config_path = get_config_dir() / "config.yaml"

    config_dict = _read_yaml(config_path, "Configuration")
    try:
        return TiergateConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        raise ConfigError(
            "Configuration validation failed:\n" + _format_validation_errors(e),
            config_file=str(config_path),
            details={"validation_errors": e.errors()},
        ) from e


def load_credentials(credentials_path: Path | None = None) -> CredentialsConfig:
    """Load credentials from YAML file.

    Args:
        credentials_path: Path to credentials file.
            Defaults to ~/.tiergate/credentials.yaml.

    Returns:
        Validated CredentialsConfig instance.

    Raises:
        ConfigError: If file doesn't exist, is malformed, or fails validation.
    """
    if credentials_path is None:
        credentials_path = get_config_dir() / "credentials.yaml"

    credentials_dict = _read_yaml(credentials_path, "Credentials")

    file_mode = credentials_path.stat().st_mode
    if file_mode & (stat.S_IRGRP | stat.S_IROTH):
        log.warning("config.credentials.insecure_permissions", path=str(credentials_path))

    try:
        return CredentialsConfig.model_validate(credentials_dict)
    except PydanticValidationError as e:
        raise ConfigError(
            "Credentials validation failed:\n" + _format_validation_errors(e),
            config_file=str(credentials_path),
            details={"validation_errors": e.errors()},
        ) from e


def load_credentials_or_empty(credentials_path: Path | None = None) -> CredentialsConfig:
    """Load credentials, treating a missing file as no credentials.

    Keys can still come from the environment through resolve_api_key.

    Raises:
        ConfigError: If the file exists but is malformed.
    """
    path = credentials_path or get_config_dir() / "credentials.yaml"
    if not path.exists():
        return CredentialsConfig()
    return load_credentials(path)


def resolve_api_key(provider: str, credentials: CredentialsConfig | None = None) -> str | None:
    """Find the API key for a provider.

    Priority:
        1. credentials.yaml entry for the provider (placeholders ignored)
        2. <PROVIDER>_API_KEY environment variable

    Returns:
        The key, or None when the provider has no usable credential.
    """
    if credentials is not None:
        entry = credentials.providers.get(provider)
        if entry is not None and not entry.api_key.startswith(_PLACEHOLDER_PREFIX):
            return entry.api_key

    env_key = os.environ.get(f"{provider.upper()}_API_KEY", "").strip()
    return env_key or None
