"""Data models for prompt and provider A/B experiments.

Classes:
    PromptConfig: Per-variant overrides of a tier's prompt and model
    Variant: One arm of an experiment
    Experiment: A named set of variants with normalized weights
    MetricSample: One recorded evaluation of a variant
    QualityStats / LatencyStats / TokenStats: Aggregates for one variant
    VariantStats: All aggregates for one variant
    ExperimentStats: Aggregates for every variant of an experiment
    WinnerSelection: Outcome of pick_winner
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

type OptimizeFor = Literal["quality", "cost", "latency"]


class Confidence(StrEnum):
    """How far the winning variant leads its best competitor."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True, slots=True)
class PromptConfig:
    """Overrides applied to the variant's tier; None keeps the tier default.

    Attributes:
        system_prompt: System prompt sent instead of the tier's.
        model: Model requested instead of the tier's.
    """

    system_prompt: str | None = None
    model: str | None = None


@dataclass(frozen=True, slots=True)
class Variant:
    """One configured option competing in an experiment.

    Attributes:
        id: Identifier, unique within the experiment.
        provider: Name of the tier the variant runs on.
        weight: Traffic share. Normalized by define_experiment; None counts as 1.
        prompt_config: Prompt and model overrides.
        output_schema: Any type pydantic's TypeAdapter accepts, validated
            against the parsed units as a list of dicts.
        quality_threshold: Gate threshold for this variant.
    """

    id: str
    provider: str
    weight: float | None = None
    prompt_config: PromptConfig = field(default_factory=PromptConfig)
    output_schema: Any = None
    quality_threshold: float = 0.70


@dataclass(frozen=True, slots=True)
class Experiment:
    """A named experiment whose variant weights sum to 1.

    Build with define_experiment(); samples live in a MetricsStore.
    """

    name: str
    variants: tuple[Variant, ...]
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def get_variant(self, variant_id: str) -> Variant | None:
        return next((v for v in self.variants if v.id == variant_id), None)


@dataclass(frozen=True, slots=True)
class MetricSample:
    """One evaluation of a variant.

    Attributes:
        quality_score: Gate score of the returned answer.
        escalated: Whether the fallback tier was used.
        schema_valid: Whether the variant's output passed its schema.
        latency_ms: Total evaluation latency.
        token_count: Total tokens across tiers.
        timestamp: When the sample was recorded.
    """

    quality_score: float
    escalated: bool
    schema_valid: bool
    latency_ms: float
    token_count: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class QualityStats:
    mean: float
    min: float
    max: float
    p50: float
    p95: float


@dataclass(frozen=True, slots=True)
class LatencyStats:
    mean: float
    p50: float
    p95: float


@dataclass(frozen=True, slots=True)
class TokenStats:
    mean: float
    total: int


@dataclass(frozen=True, slots=True)
class VariantStats:
    """Aggregates for one variant; the optional parts are None without samples."""

    variant_id: str
    samples: int
    weight: float
    quality: QualityStats | None = None
    escalation_rate: float | None = None
    schema_pass_rate: float | None = None
    latency: LatencyStats | None = None
    tokens: TokenStats | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"samples": self.samples, "weight": self.weight}
        if self.quality is not None:
            data["quality"] = {
                "mean": self.quality.mean,
                "min": self.quality.min,
                "max": self.quality.max,
                "p50": self.quality.p50,
                "p95": self.quality.p95,
            }
        if self.escalation_rate is not None:
            data["escalationRate"] = self.escalation_rate
        if self.schema_pass_rate is not None:
            data["schemaPassRate"] = self.schema_pass_rate
        if self.latency is not None:
            data["latency"] = {
                "mean": self.latency.mean,
                "p50": self.latency.p50,
                "p95": self.latency.p95,
            }
        if self.tokens is not None:
            data["tokens"] = {"mean": self.tokens.mean, "total": self.tokens.total}
        return data


@dataclass(frozen=True, slots=True)
class ExperimentStats:
    """Aggregates for every variant, in variant order."""

    experiment: str
    total_samples: int
    started_at: datetime
    variants: dict[str, VariantStats]

    def to_dict(self) -> dict[str, Any]:
        return {
            "experiment": self.experiment,
            "totalSamples": self.total_samples,
            "startedAt": self.started_at.isoformat(),
            "variants": {vid: s.to_dict() for vid, s in self.variants.items()},
        }


@dataclass(frozen=True, slots=True)
class WinnerSelection:
    """Outcome of pick_winner.

    Attributes:
        winner: Winning variant, None when fewer than two were eligible.
        confidence: Coarse rating of the lead over the runner-up.
        stats: Stats the decision was taken on.
        scores: Objective score per eligible variant.
    """

    winner: Variant | None
    confidence: Confidence
    stats: ExperimentStats
    scores: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "winner": self.winner.id if self.winner else None,
            "confidence": self.confidence.value,
            "scores": dict(self.scores),
            "stats": self.stats.to_dict(),
        }
