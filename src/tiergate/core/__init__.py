"""tiergate core module - shared types, errors, and security helpers."""

from tiergate.core.errors import (
    ConfigError,
    ProviderError,
    TiergateError,
    ValidationError,
)
from tiergate.core.security import (
    MAX_LLM_RESPONSE_LENGTH,
    clamp_provider_output,
    mask_api_key,
    sanitize_for_logging,
)
from tiergate.core.types import Milliseconds, QualityScore, Result, TokenCount

__all__ = [
    # Types
    "Result",
    "TokenCount",
    "Milliseconds",
    "QualityScore",
    # Errors
    "TiergateError",
    "ProviderError",
    "ConfigError",
    "ValidationError",
    # Security utilities
    "MAX_LLM_RESPONSE_LENGTH",
    "clamp_provider_output",
    "mask_api_key",
    "sanitize_for_logging",
]
