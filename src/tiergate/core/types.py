"""Core types for tiergate - Result type and type aliases.

Provider calls and configuration lookups fail in expected ways (rate limits,
timeouts, missing keys). Those failures travel as values in a Result rather
than as exceptions, so the escalation router can inspect them and decide
whether to move on to the next tier.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import cast


@dataclass(frozen=True, slots=True)
class Result[T, E]:
    """Either a success value (Ok) or an expected failure (Err).

    Usage:
        result = await adapter.complete(messages, config)
        if result.is_ok:
            text = result.value.content
        else:
            log.warning("provider.call.failed", error=str(result.error))
    """

    _value: T | None
    _error: E | None
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        """Wrap a success value."""
        return cls(_value=value, _error=None, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        """Wrap an expected failure."""
        return cls(_value=None, _error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        """True when this Result holds a value."""
        return self._is_ok

    @property
    def is_err(self) -> bool:
        """True when this Result holds an error."""
        return not self._is_ok

    def __repr__(self) -> str:
        if self._is_ok:
            return f"Ok({self._value!r})"
        return f"Err({self._error!r})"

    @property
    def value(self) -> T:
        """The Ok value.

        Raises:
            ValueError: If the Result is Err.
        """
        if not self._is_ok:
            msg = "Cannot access value on Err result"
            raise ValueError(msg)
        return cast(T, self._value)

    @property
    def error(self) -> E:
        """The Err value.

        Raises:
            ValueError: If the Result is Ok.
        """
        if self._is_ok:
            msg = "Cannot access error on Ok result"
            raise ValueError(msg)
        return cast(E, self._error)

    def unwrap(self) -> T:
        """Return the value, raising ValueError carrying the error otherwise."""
        if self._is_ok:
            return cast(T, self._value)
        raise ValueError(str(self._error))

    def unwrap_or(self, default: T) -> T:
        """Return the value, or ``default`` when the Result is Err."""
        if self._is_ok:
            return cast(T, self._value)
        return default

    def map[U](self, fn: Callable[[T], U]) -> Result[U, E]:
        """Apply ``fn`` to an Ok value; pass an Err through unchanged."""
        if self._is_ok:
            return Result.ok(fn(cast(T, self._value)))
        return Result.err(cast(E, self._error))

    def map_err[F](self, fn: Callable[[E], F]) -> Result[T, F]:
        """Apply ``fn`` to an Err value; pass an Ok through unchanged."""
        if self._is_ok:
            return Result.ok(cast(T, self._value))
        return Result.err(fn(cast(E, self._error)))

    def and_then[U](self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain another fallible step onto an Ok value."""
        if self._is_ok:
            return fn(cast(T, self._value))
        return Result.err(cast(E, self._error))


TokenCount = int
"""Token counts reported by providers."""

Milliseconds = float
"""Wall-clock durations, always in milliseconds."""

QualityScore = float
"""Composite quality-gate score between 0.0 and 1.0."""
