"""Escalation routing for tiergate.

Main exports:
    EscalationRouter: cheapest-first, quality-gated tier chain
    ProviderTier / build_tiers: tiers bound to their adapters
    EvaluationResult / TierAttempt / Timing: routing results
    UsageStore: per-caller usage counters
"""

from tiergate.routing.models import EvaluationResult, TierAttempt, Timing
from tiergate.routing.router import EscalationRouter
from tiergate.routing.tiers import ProviderTier, build_tier, build_tiers, order_tiers
from tiergate.routing.usage import ANONYMOUS_CALLER, CallerUsage, UsageRecord, UsageStore

__all__ = [
    "EscalationRouter",
    "ProviderTier",
    "build_tier",
    "build_tiers",
    "order_tiers",
    "EvaluationResult",
    "TierAttempt",
    "Timing",
    "ANONYMOUS_CALLER",
    "CallerUsage",
    "UsageRecord",
    "UsageStore",
]
