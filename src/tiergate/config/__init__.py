"""Configuration module for tiergate.

Configuration is stored in ~/.tiergate/ (config.yaml and credentials.yaml).

Usage:
    from tiergate.config import load_config, load_credentials_or_empty

    config = load_config()
    credentials = load_credentials_or_empty()
    threshold = config.gate.threshold
"""

from tiergate.config.loader import (
    create_default_config,
    ensure_config_dir,
    load_config,
    load_credentials,
    load_credentials_or_empty,
    resolve_api_key,
)
from tiergate.config.models import (
    CredentialsConfig,
    ExperimentConfig,
    GateConfig,
    LoggingConfig,
    ProviderCredentials,
    RouterConfig,
    TierConfig,
    TiergateConfig,
    VariantConfig,
    get_config_dir,
    get_default_config,
    get_default_credentials,
)

__all__ = [
    # Models
    "TiergateConfig",
    "RouterConfig",
    "TierConfig",
    "GateConfig",
    "ExperimentConfig",
    "VariantConfig",
    "CredentialsConfig",
    "ProviderCredentials",
    "LoggingConfig",
    # Loader functions
    "load_config",
    "load_credentials",
    "load_credentials_or_empty",
    "create_default_config",
    "ensure_config_dir",
    "resolve_api_key",
    # Model helpers
    "get_config_dir",
    "get_default_config",
    "get_default_credentials",
]
