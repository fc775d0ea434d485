"""Credential masking and size limits for tiergate.

API keys pass through configuration, adapters and log calls. Everything that
might echo one goes through these helpers first.
"""

from typing import Any

MAX_LLM_RESPONSE_LENGTH = 100_000  # 100KB of provider output
MAX_REQUEST_LENGTH = 50_000  # 50KB for an inbound request

SENSITIVE_FIELD_NAMES = frozenset(
    {
        "password",
        "api_key",
        "apikey",
        "api-key",
        "secret",
        "token_value",
        "credential",
        "auth",
        "private",
        "bearer",
        "authorization",
    }
)

SENSITIVE_PREFIXES = (
    "sk-",
    "pk-",
    "api-",
    "bearer ",
    "token ",
    "secret_",
    "eyJ",  # JWT-shaped MiniMax keys
)

def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask an API key, keeping a recognizable prefix and the last characters.

    Example:
        >>> mask_api_key("sk-1234567890abcdef")
        'sk-...cdef'
    """
    if not api_key:
        return "<empty>"
    if len(api_key) <= visible_chars + 4:
        return "*" * len(api_key)
    if "-" in api_key[:6]:
        prefix = api_key[: api_key.index("-") + 1]
        return f"{prefix}...{api_key[-visible_chars:]}"
    return f"...{api_key[-visible_chars:]}"


def is_sensitive_field(field_name: str) -> bool:
    """True if a field name suggests it holds a credential."""
    if not field_name:
        return False
    field_lower = field_name.lower()
    return any(sensitive in field_lower for sensitive in SENSITIVE_FIELD_NAMES)


def is_sensitive_value(value: Any) -> bool:
    """True if a string value looks like a credential."""
    if not isinstance(value, str):
        return False
    value_lower = value.lower()
    return any(value_lower.startswith(prefix.lower()) for prefix in SENSITIVE_PREFIXES)


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Copy ``data`` with credential-looking fields and values masked.

    Example:
        >>> sanitize_for_logging({"api_key": "sk-secret123", "tier": "openai"})
        {'api_key': '<REDACTED>', 'tier': 'openai'}
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        if is_sensitive_field(key):
            result[key] = "<REDACTED>"
        elif isinstance(value, str) and is_sensitive_value(value):
            result[key] = mask_api_key(value)
        elif isinstance(value, dict):
            result[key] = sanitize_for_logging(value)
        else:
            result[key] = value
    return result


def clamp_provider_output(content: str) -> tuple[str, bool]:
    """Cut provider output down to MAX_LLM_RESPONSE_LENGTH.

    Returns:
        Tuple of (content, truncated).
    """
    if len(content) <= MAX_LLM_RESPONSE_LENGTH:
        return content, False
    return content[:MAX_LLM_RESPONSE_LENGTH], True
