"""Error hierarchy for tiergate.

These exceptions double as the error values carried by Result for expected
failures. Raising them is reserved for programming errors and for the CLI
and configuration loader, which surface them directly to the user.

Exception Hierarchy:
    TiergateError (base)
    ├── ProviderError     - provider call failures (network, auth, rate limit, timeout)
    ├── ConfigError       - configuration files and missing credentials
    └── ValidationError   - experiment definitions and other input validation
"""

from __future__ import annotations

from typing import Any


class TiergateError(Exception):
    """Base exception for all tiergate errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context for logs and callers.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ProviderError(TiergateError):
    """A provider tier failed to produce a completion.

    The escalation router treats this as an implicit gate failure on every
    tier but the terminal one.

    Attributes:
        provider: Provider or tier name (e.g. "minimax", "openai").
        status_code: HTTP status code, when the failure came from an HTTP response.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.provider = provider
        self.status_code = status_code

    @classmethod
    def from_exception(cls, exc: BaseException, *, provider: str | None = None) -> ProviderError:
        """Wrap a client library exception, keeping it as ``__cause__``.

        Args:
            exc: The original exception.
            provider: Name of the provider that raised it.

        Returns:
            A ProviderError carrying the original status code when present.
        """
        error = cls(
            str(exc) or type(exc).__name__,
            provider=provider,
            status_code=getattr(exc, "status_code", None),
            details={"original_exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error


class ConfigError(TiergateError):
    """Configuration could not be loaded or a required credential is missing.

    Attributes:
        config_key: Dotted configuration key involved, if known.
        config_file: Path of the configuration file involved, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


class ValidationError(TiergateError):
    """Input data failed validation.

    Attributes:
        field: The field that failed validation.
        value: The offending value. Use ``safe_value`` when logging it.
    """

    _SENSITIVE_FIELDS = frozenset(
        {"password", "api_key", "secret", "token", "credential", "auth", "key", "apikey"}
    )

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value

    @property
    def safe_value(self) -> str:
        """Representation of ``value`` that never leaks credentials."""
        if self.value is None:
            return "<None>"
        if self.field and any(s in self.field.lower() for s in self._SENSITIVE_FIELDS):
            return "<REDACTED>"
        if isinstance(self.value, str):
            if len(self.value) > 50:
                return f"{self.value[:20]}...({len(self.value)} chars)"
            return repr(self.value)
        if isinstance(self.value, (int, float, bool)):
            return repr(self.value)
        return f"<{type(self.value).__name__}>"

    def __str__(self) -> str:
        base = self.message
        if self.field:
            base = f"{base} (field: {self.field}, value: {self.safe_value})"
        if self.details:
            base = f"{base} (details: {self.details})"
        return base
