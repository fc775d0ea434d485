"""Per-caller usage counters.

Every completed evaluation is appended to the caller's record list. Counts,
averages and rates are recomputed from the full list on each read, so the
only shared mutation is an append under the lock.

The UsageStore is owned by the caller of the router: create it at service
start, hand it to EscalationRouter or ExperimentEngine, and clear() it at
shutdown.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
import math
import threading
from typing import Any

from tiergate.core.security import mask_api_key
from tiergate.observability.logging import get_logger
from tiergate.routing.models import EvaluationResult

log = get_logger(__name__)

# Caller key used when requests are not attributed to an API key.
ANONYMOUS_CALLER = "open"


def display_caller(caller: str) -> str:
    """Caller key safe for logs and reports."""
    return caller if caller == ANONYMOUS_CALLER else mask_api_key(caller)


@dataclass(frozen=True, slots=True)
class UsageRecord:
    """One completed evaluation as seen by the usage counters."""

    model: str
    total_tokens: int
    escalated: bool
    quality: float
    recorded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_result(cls, result: EvaluationResult) -> UsageRecord:
        return cls(
            model=result.model or "unknown",
            total_tokens=result.usage.total_tokens,
            escalated=result.escalated,
            quality=result.quality,
        )


@dataclass(frozen=True, slots=True)
class CallerUsage:
    """Aggregated usage for one caller key.

    Attributes:
        caller: Caller key the counters belong to.
        requests: Completed evaluations.
        total_tokens: Tokens summed over every tier that answered.
        escalations: Evaluations served above the first tier tried.
        avg_quality: Mean gate score, 0.0 without requests.
        escalation_rate: escalations / requests, 0.0 without requests.
        last_request: Time of the latest record, None without requests.
        by_model: Evaluations per serving model.
    """

    caller: str
    requests: int = 0
    total_tokens: int = 0
    escalations: int = 0
    avg_quality: float = 0.0
    escalation_rate: float = 0.0
    last_request: datetime | None = None
    by_model: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "caller": display_caller(self.caller),
            "requests": self.requests,
            "totalTokens": self.total_tokens,
            "escalations": self.escalations,
            "avgQuality": round(self.avg_quality, 3),
            "escalationRate": round(self.escalation_rate, 4),
            "lastRequest": self.last_request.isoformat() if self.last_request else None,
            "byModel": dict(self.by_model),
        }


class UsageStore:
    """Thread-safe, append-only usage records keyed by caller."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: defaultdict[str, list[UsageRecord]] = defaultdict(list)

    def record(self, caller: str, result: EvaluationResult) -> None:
        """Append the usage of one completed evaluation."""
        entry = UsageRecord.from_result(result)
        with self._lock:
            self._records[caller].append(entry)
        log.debug(
            "usage.request.recorded",
            caller=display_caller(caller),
            model=entry.model,
            tokens=entry.total_tokens,
            escalated=entry.escalated,
        )

    def records(self, caller: str) -> tuple[UsageRecord, ...]:
        with self._lock:
            return tuple(self._records.get(caller, ()))

    def callers(self) -> tuple[str, ...]:
        """Caller keys with at least one record, in first-seen order."""
        with self._lock:
            return tuple(self._records)

    def usage(self, caller: str) -> CallerUsage:
        """Counters for ``caller``, computed from its full record list."""
        return summarize_usage(caller, self.records(caller))

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


def summarize_usage(caller: str, records: tuple[UsageRecord, ...]) -> CallerUsage:
    if not records:
        return CallerUsage(caller=caller)

    requests = len(records)
    escalations = sum(1 for r in records if r.escalated)
    return CallerUsage(
        caller=caller,
        requests=requests,
        total_tokens=sum(r.total_tokens for r in records),
        escalations=escalations,
        avg_quality=math.fsum(r.quality for r in records) / requests,
        escalation_rate=escalations / requests,
        last_request=max(r.recorded_at for r in records),
        by_model=dict(Counter(r.model for r in records)),
    )
