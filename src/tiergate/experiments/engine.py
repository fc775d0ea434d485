"""Experiment engine: weighted variant selection over the escalation router.

Instead of the fixed cost order, each request runs on a randomly selected
variant's tier (with the variant's prompt overrides and threshold) and falls
back to a single fallback tier when the variant's answer fails the gate.
One MetricSample is recorded per completed evaluation.

Usage:
    store = MetricsStore()
    engine = ExperimentEngine(tiers, fallback="anthropic", store=store)
    result = await engine.evaluate_with_experiment(request, experiment)
    selection = pick_winner(experiment, store)
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
import random
from typing import Any

from tiergate.core.errors import ConfigError, ProviderError
from tiergate.core.types import Result
from tiergate.experiments.metrics import MetricsStore
from tiergate.experiments.models import Experiment, MetricSample, Variant
from tiergate.experiments.schema import SchemaValidation, validate_output
from tiergate.experiments.selection import select_variant
from tiergate.gate.policy import DEFAULT_POLICY, ScoringPolicy
from tiergate.gate.quality_gate import QualityGate
from tiergate.observability.logging import get_logger
from tiergate.routing.models import EvaluationResult
from tiergate.routing.router import EscalationRouter
from tiergate.routing.tiers import ProviderTier
from tiergate.routing.usage import ANONYMOUS_CALLER, UsageStore

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExperimentResult:
    """An EvaluationResult attributed to the variant that served it.

    Attributes:
        evaluation: Routed evaluation result.
        variant_id: Selected variant.
        schema_valid: Whether the variant's own output passed its schema.
    """

    evaluation: EvaluationResult
    variant_id: str
    schema_valid: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.evaluation.to_dict(),
            "variantId": self.variant_id,
            "schemaValid": self.schema_valid,
        }


class ExperimentEngine:
    """Runs requests through experiment variants and records their metrics."""

    def __init__(
        self,
        tiers: Sequence[ProviderTier],
        *,
        fallback: str,
        store: MetricsStore,
        policy: ScoringPolicy = DEFAULT_POLICY,
        allow_escalation: bool = True,
        usage_store: UsageStore | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            tiers: Tiers variants may name, keyed by tier name.
            fallback: Name of the tier used when a variant fails the gate.
            store: Metrics store receiving one sample per evaluation.
            policy: Scoring policy for the quality gate.
            allow_escalation: Whether gate failures fall back.
            usage_store: Per-caller usage counters, when the caller keeps them.

        Raises:
            ValueError: If the fallback tier is not among the tiers.
        """
        self._tiers = {t.name: t for t in tiers}
        if fallback not in self._tiers:
            raise ValueError(f"Fallback tier '{fallback}' is not configured")
        self._fallback = self._tiers[fallback]
        self.store = store
        self.policy = policy
        self.allow_escalation = allow_escalation
        self.usage_store = usage_store

    def _variant_tier(self, variant: Variant) -> ProviderTier | None:
        tier = self._tiers.get(variant.provider)
        if tier is None:
            return None
        overrides = variant.prompt_config
        return replace(
            tier,
            system_prompt=overrides.system_prompt or tier.system_prompt,
            model=overrides.model or tier.model,
            skip_if_unconfigured=False,
        )

    def _validate_schema(
        self, variant: Variant, tier_name: str, evaluation: EvaluationResult
    ) -> SchemaValidation:
        """Validate the units of the variant tier's own answer.

        Nothing to validate when that tier produced no units.
        """
        attempt = next((a for a in evaluation.attempts if a.tier == tier_name), None)
        if attempt is None or attempt.report is None or not attempt.report.responses:
            return SchemaValidation(valid=True)
        return validate_output(variant, attempt.report.responses)

    async def evaluate_with_experiment(
        self,
        request: str,
        experiment: Experiment,
        *,
        rng: random.Random | None = None,
        caller: str = ANONYMOUS_CALLER,
    ) -> Result[ExperimentResult, ProviderError | ConfigError]:
        """Evaluate a request on a randomly selected variant.

        Args:
            request: Natural-language request.
            experiment: Experiment to select from.
            rng: Random source for variant selection.
            caller: Key the usage counters are kept under.

        Returns:
            Result with the ExperimentResult, or the router's error. No
            sample is recorded for failed evaluations.
        """
        variant = select_variant(experiment, rng)
        tier = self._variant_tier(variant)
        if tier is None:
            return Result.err(
                ConfigError(
                    f"Variant '{variant.id}' names unknown tier '{variant.provider}'",
                    config_key=f"experiments.{experiment.name}.variants.{variant.id}.provider",
                )
            )

        chain = [tier] if tier.name == self._fallback.name else [tier, self._fallback]
        router = EscalationRouter(
            chain,
            QualityGate(threshold=variant.quality_threshold, policy=self.policy),
            allow_escalation=self.allow_escalation,
            order_by_cost=False,
            usage_store=self.usage_store,
        )

        log.debug(
            "experiment.variant.selected",
            experiment=experiment.name,
            variant=variant.id,
            tier=tier.name,
        )
        routed = await router.evaluate(request, caller=caller)
        if routed.is_err:
            log.warning(
                "experiment.evaluation.failed",
                experiment=experiment.name,
                variant=variant.id,
                error=routed.error.message,
            )
            return Result.err(routed.error)

        evaluation = routed.value
        validation = self._validate_schema(variant, tier.name, evaluation)
        if validation.issues and not evaluation.escalated:
            evaluation = replace(evaluation, issues=evaluation.issues + validation.issues)

        self.store.record(
            experiment.name,
            variant.id,
            MetricSample(
                quality_score=evaluation.quality,
                escalated=evaluation.escalated,
                schema_valid=validation.valid,
                latency_ms=evaluation.timing.total,
                token_count=evaluation.usage.total_tokens,
            ),
        )
        return Result.ok(
            ExperimentResult(
                evaluation=evaluation,
                variant_id=variant.id,
                schema_valid=validation.valid,
            )
        )
