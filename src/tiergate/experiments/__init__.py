"""A/B experiments over provider tiers and prompts.

Main exports:
    define_experiment / select_variant: experiment setup and weighted selection
    ExperimentEngine: variant-aware evaluation with a single fallback tier
    MetricsStore / get_experiment_stats / percentile: metric aggregation
    pick_winner: winner selection with a coarse confidence rating
    validate_output: pydantic output-schema validation
"""

from tiergate.experiments.engine import ExperimentEngine, ExperimentResult
from tiergate.experiments.metrics import (
    MetricsStore,
    get_experiment_stats,
    get_variant_stats,
    percentile,
)
from tiergate.experiments.models import (
    Confidence,
    Experiment,
    ExperimentStats,
    LatencyStats,
    MetricSample,
    OptimizeFor,
    PromptConfig,
    QualityStats,
    TokenStats,
    Variant,
    VariantStats,
    WinnerSelection,
)
from tiergate.experiments.schema import (
    BUILTIN_SCHEMAS,
    SchemaValidation,
    UnitModel,
    validate_output,
)
from tiergate.experiments.selection import (
    define_experiment,
    experiment_from_config,
    select_variant,
)
from tiergate.experiments.winner import objective_score, pick_winner, rate_confidence

__all__ = [
    # Models
    "Confidence",
    "Experiment",
    "ExperimentStats",
    "LatencyStats",
    "MetricSample",
    "OptimizeFor",
    "PromptConfig",
    "QualityStats",
    "TokenStats",
    "Variant",
    "VariantStats",
    "WinnerSelection",
    # Definition and selection
    "define_experiment",
    "experiment_from_config",
    "select_variant",
    # Schema
    "BUILTIN_SCHEMAS",
    "SchemaValidation",
    "UnitModel",
    "validate_output",
    # Metrics
    "MetricsStore",
    "get_experiment_stats",
    "get_variant_stats",
    "percentile",
    # Winner
    "objective_score",
    "pick_winner",
    "rate_confidence",
    # Engine
    "ExperimentEngine",
    "ExperimentResult",
]
