"""Quality-gated escalation router.

The router forwards a request to the cheapest tier, runs the quality gate on
the answer, and only re-issues the request to the next more expensive tier
when the gate fails. The terminal tier always returns its answer.

State machine per request:
    TRY_TIER(i) -> GATE -> DONE            when the gate passes, escalation is
                                           disabled, or i is terminal
    TRY_TIER(i) -> GATE -> TRY_TIER(i + 1) otherwise

A provider failure (error result, unexpected exception or timeout) below the
terminal tier escalates like a gate failure. At the terminal tier it is
returned to the caller. Tiers run strictly one after another.

Usage:
    from tiergate.routing import EscalationRouter, build_tiers

    router = EscalationRouter(build_tiers(config, credentials), QualityGate(0.7))
    result = await router.evaluate("A marketplace for ...")
    if result.is_ok:
        print(result.value.provider, result.value.quality)
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
import time
from uuid import uuid4

from tiergate.core.errors import ConfigError, ProviderError
from tiergate.core.types import Result
from tiergate.gate.models import QualityReport
from tiergate.gate.quality_gate import QualityGate
from tiergate.observability.logging import bind_context, get_logger, unbind_context
from tiergate.providers.base import CompletionResponse, UsageInfo
from tiergate.providers.prompts import build_messages
from tiergate.routing.models import EvaluationResult, TierAttempt, Timing
from tiergate.routing.tiers import ProviderTier, order_tiers
from tiergate.routing.usage import ANONYMOUS_CALLER, UsageStore

log = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


@dataclass(frozen=True, slots=True)
class _TierOutcome:
    attempt: TierAttempt
    response: CompletionResponse | None = None


class EscalationRouter:
    """Routes one request through ordered provider tiers.

    The router holds no per-request state; concurrent evaluate() calls are
    independent.

    Attributes:
        tiers: Tiers in the order they are tried; the last one is terminal.
        gate: Quality gate applied to every answer.
        allow_escalation: When False a failed gate returns the current answer.
            Provider failures still escalate.
        usage_store: Per-caller usage counters, when the caller keeps them.
    """

    def __init__(
        self,
        tiers: Sequence[ProviderTier],
        gate: QualityGate | None = None,
        *,
        allow_escalation: bool = True,
        order_by_cost: bool = True,
        usage_store: UsageStore | None = None,
    ) -> None:
        """Initialize the router.

        Args:
            tiers: Provider tiers; at least one.
            gate: Quality gate; defaults to QualityGate() at the stable threshold.
            allow_escalation: Whether gate failures escalate.
            order_by_cost: Sort tiers by cost_factor. When False the given
                order is kept.
            usage_store: Receives one record per completed evaluation.

        Raises:
            ValueError: If tiers is empty or tier names repeat.
        """
        if not tiers:
            raise ValueError("EscalationRouter needs at least one tier")
        names = [t.name for t in tiers]
        if len(set(names)) != len(names):
            raise ValueError(f"Tier names must be unique: {names}")

        self.tiers: tuple[ProviderTier, ...] = tuple(
            order_tiers(tiers) if order_by_cost else tiers
        )
        self.gate = gate or QualityGate()
        self.allow_escalation = allow_escalation
        self.usage_store = usage_store

    @property
    def terminal_tier(self) -> ProviderTier:
        return self.tiers[-1]

    async def _call_tier(self, tier: ProviderTier, request: str) -> _TierOutcome:
        """Call one tier with its timeout and gate the answer."""
        assert tier.adapter is not None
        messages = build_messages(request, tier.system_prompt)

        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                tier.adapter.complete(messages, tier.completion_config()),
                timeout=tier.timeout_seconds,
            )
        except TimeoutError:
            result = Result.err(
                ProviderError(
                    f"Tier '{tier.name}' timed out after {tier.timeout_seconds}s",
                    provider=tier.name,
                    details={"timeout_seconds": tier.timeout_seconds},
                )
            )
        except Exception as e:
            log.exception("router.tier.unexpected_error", tier=tier.name)
            result = Result.err(ProviderError.from_exception(e, provider=tier.name))
        latency_ms = _elapsed_ms(start)

        if result.is_err:
            return _TierOutcome(
                attempt=TierAttempt(
                    tier=tier.name,
                    model=tier.model,
                    latency_ms=latency_ms,
                    error=result.error,
                )
            )

        response = result.value
        report, gate_ms = self.gate.timed_gate(response.content)
        return _TierOutcome(
            attempt=TierAttempt(
                tier=tier.name,
                model=response.model,
                latency_ms=latency_ms,
                gate_ms=gate_ms,
                usage=response.usage,
                report=report,
            ),
            response=response,
        )

    def _escalation_reason(self, attempt: TierAttempt) -> str:
        if attempt.error is not None:
            return f"{attempt.tier} error: {attempt.error.message}"
        assert attempt.report is not None
        return f"{attempt.tier} scored {attempt.report.score} < {self.gate.threshold}"

    def _build_result(
        self,
        tier: ProviderTier,
        response: CompletionResponse,
        report: QualityReport,
        attempts: list[TierAttempt],
        reasons: list[str],
        started: float,
    ) -> EvaluationResult:
        answered = [a for a in attempts if a.succeeded]
        usage = sum((a.usage for a in answered), UsageInfo())
        timing = Timing(
            primary=attempts[0].latency_ms,
            gate=sum(a.gate_ms for a in attempts),
            escalation=sum(a.latency_ms for a in attempts[1:]),
            total=_elapsed_ms(started),
        )
        return EvaluationResult(
            provider=tier.name,
            model=response.model,
            quality=report.score,
            escalated=len(attempts) > 1,
            escalation_reasons=tuple(reasons),
            responses=report.responses,
            issues=report.issues,
            usage=usage,
            tier_usage={a.tier: a.usage for a in answered},
            timing=timing,
            reasoning=response.reasoning,
            attempts=tuple(attempts),
            passes_gate=report.passes_gate,
        )

    async def evaluate(
        self, request: str, *, caller: str = ANONYMOUS_CALLER
    ) -> Result[EvaluationResult, ProviderError | ConfigError]:
        """Route one request through the tiers.

        Args:
            request: Natural-language request forwarded to the providers.
            caller: Key the usage counters are kept under.

        Returns:
            Result with the EvaluationResult of the tier that answered, a
            ProviderError when the terminal tier failed, or a ConfigError when
            a required tier has no credential.
        """
        started = time.perf_counter()
        attempts: list[TierAttempt] = []
        reasons: list[str] = []
        last_index = len(self.tiers) - 1

        bind_context(evaluation_id=uuid4().hex[:12])
        try:
            for index, tier in enumerate(self.tiers):
                is_terminal = index == last_index

                if not tier.is_configured:
                    if tier.skip_if_unconfigured and not is_terminal:
                        log.warning("router.tier.skipped", tier=tier.name, reason="no credential")
                        continue
                    log.error("router.tier.unconfigured", tier=tier.name)
                    return Result.err(
                        ConfigError(
                            f"No credential configured for tier '{tier.name}'",
                            config_key=f"router.tiers.{tier.name}",
                            details={"tier": tier.name},
                        )
                    )

                log.debug("router.tier.attempted", tier=tier.name, model=tier.model)
                outcome = await self._call_tier(tier, request)
                attempt = outcome.attempt
                attempts.append(attempt)

                if attempt.error is not None:
                    if is_terminal:
                        log.error(
                            "router.tier.failed",
                            tier=tier.name,
                            error=attempt.error.message,
                        )
                        return Result.err(attempt.error)
                    reasons.append(self._escalation_reason(attempt))
                    log.warning(
                        "router.tier.escalated",
                        tier=tier.name,
                        reason="provider_error",
                        error=attempt.error.message,
                    )
                    continue

                report = attempt.report
                assert report is not None and outcome.response is not None
                if report.passes_gate or not self.allow_escalation or is_terminal:
                    result = self._build_result(
                        tier, outcome.response, report, attempts, reasons, started
                    )
                    log.info(
                        "router.evaluation.completed",
                        tier=tier.name,
                        quality=report.score,
                        passes_gate=report.passes_gate,
                        escalated=result.escalated,
                        total_ms=round(result.timing.total),
                    )
                    if self.usage_store is not None:
                        self.usage_store.record(caller, result)
                    return Result.ok(result)

                reasons.append(self._escalation_reason(attempt))
                log.warning(
                    "router.tier.escalated",
                    tier=tier.name,
                    reason="quality_gate",
                    quality=report.score,
                    threshold=self.gate.threshold,
                )
        finally:
            unbind_context("evaluation_id")

        # Unreachable: the terminal tier always returns.
        raise AssertionError("terminal tier did not return")
