"""Data models produced by the escalation router.

Classes:
    Timing: Millisecond timing breakdown of one evaluation
    TierAttempt: Audit record of one tier tried during an evaluation
    EvaluationResult: The answer returned to the caller
"""

from dataclasses import dataclass, field
from typing import Any

from tiergate.core.errors import ProviderError
from tiergate.gate.models import Issue, QualityReport, ResponseUnit
from tiergate.providers.base import UsageInfo


@dataclass(frozen=True, slots=True)
class Timing:
    """Timing breakdown in milliseconds.

    Attributes:
        primary: Latency of the first attempted tier.
        gate: Time spent in the quality gate across all tiers.
        escalation: Summed latency of the tiers after the first.
        total: Wall time of the whole evaluation.
    """

    primary: float = 0.0
    gate: float = 0.0
    escalation: float = 0.0
    total: float = 0.0

    def to_dict(self) -> dict[str, int]:
        return {
            "primary": round(self.primary),
            "gate": round(self.gate),
            "escalation": round(self.escalation),
            "total": round(self.total),
        }


@dataclass(frozen=True, slots=True)
class TierAttempt:
    """One tier tried during an evaluation.

    Kept even when the tier's output was discarded, so callers can see why
    the router moved on.

    Attributes:
        tier: Tier name.
        model: Model the tier was configured with, or the one that answered.
        latency_ms: Provider call latency.
        gate_ms: Gate time for this tier's output (0 when it never answered).
        usage: Token usage of the call.
        report: Gate verdict, None when the call failed.
        error: Provider failure, None when the call succeeded.
    """

    tier: str
    model: str
    latency_ms: float
    gate_ms: float = 0.0
    usage: UsageInfo = field(default_factory=UsageInfo)
    report: QualityReport | None = None
    error: ProviderError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier,
            "model": self.model,
            "latencyMs": round(self.latency_ms),
            "gateMs": round(self.gate_ms),
            "usage": self.usage.to_dict(),
            "quality": round(self.report.score, 3) if self.report else None,
            "passesGate": self.report.passes_gate if self.report else None,
            "error": self.error.message if self.error else None,
        }


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Final answer of one routed evaluation.

    Attributes:
        provider: Name of the tier whose output is returned.
        model: Model that produced it.
        quality: Gate score of the returned output.
        escalated: True when at least one earlier tier was attempted.
        escalation_reasons: One line per tier escalated past.
        responses: Parsed units of the returned output.
        issues: Gate issues of the returned output.
        usage: Token usage summed over every tier that answered.
        tier_usage: Token usage per answering tier.
        timing: Millisecond breakdown.
        reasoning: Reasoning summary, when the provider returned one.
        attempts: Every tier tried, in order.
        passes_gate: Gate verdict of the returned output.
    """

    provider: str
    model: str
    quality: float
    escalated: bool
    escalation_reasons: tuple[str, ...]
    responses: tuple[ResponseUnit, ...]
    issues: tuple[Issue, ...]
    usage: UsageInfo
    tier_usage: dict[str, UsageInfo]
    timing: Timing
    reasoning: str | None = None
    attempts: tuple[TierAttempt, ...] = ()
    passes_gate: bool = False

    @property
    def escalation_reason(self) -> str | None:
        """All escalation reasons joined into one line, None when not escalated."""
        return "; ".join(self.escalation_reasons) if self.escalation_reasons else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "quality": round(self.quality, 3),
            "passesGate": self.passes_gate,
            "escalated": self.escalated,
            "escalationReason": self.escalation_reason,
            "responses": [r.to_dict() for r in self.responses],
            "issues": [i.to_dict() for i in self.issues],
            "usage": self.usage.to_dict(),
            "tierUsage": {name: u.to_dict() for name, u in self.tier_usage.items()},
            "timing": self.timing.to_dict(),
            "reasoning": self.reasoning,
            "attempts": [a.to_dict() for a in self.attempts],
        }
