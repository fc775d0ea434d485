"""Winner selection across experiment variants."""

from tiergate.experiments.metrics import MetricsStore, get_experiment_stats
from tiergate.experiments.models import (
    Confidence,
    Experiment,
    OptimizeFor,
    VariantStats,
    WinnerSelection,
)
from tiergate.observability.logging import get_logger

log = get_logger(__name__)

HIGH_CONFIDENCE_SAMPLES = 30
HIGH_CONFIDENCE_GAP = 0.10
MEDIUM_CONFIDENCE_SAMPLES = 10
MEDIUM_CONFIDENCE_GAP = 0.05


def _quality_mean(stats: VariantStats) -> float:
    if stats.quality is None:
        raise ValueError(f"Variant '{stats.variant_id}' has no samples")
    return stats.quality.mean


def objective_score(stats: VariantStats, optimize_for: OptimizeFor) -> float:
    """Score a variant with samples for the given objective; higher is better.

    Raises:
        ValueError: If the variant has no samples.
    """
    quality = _quality_mean(stats)
    if stats.tokens is None or stats.latency is None:
        raise ValueError(f"Variant '{stats.variant_id}' has no samples")
    if optimize_for == "cost":
        return quality / (stats.tokens.mean or 1)
    if optimize_for == "latency":
        return quality / (stats.latency.mean or 1) * 1000
    return quality * (1 - (stats.escalation_rate or 0.0) * 0.5)


def rate_confidence(winner: VariantStats, gap: float) -> Confidence:
    if winner.samples >= HIGH_CONFIDENCE_SAMPLES and gap > HIGH_CONFIDENCE_GAP:
        return Confidence.HIGH
    if winner.samples >= MEDIUM_CONFIDENCE_SAMPLES and gap > MEDIUM_CONFIDENCE_GAP:
        return Confidence.MEDIUM
    return Confidence.LOW


def pick_winner(
    experiment: Experiment,
    store: MetricsStore,
    *,
    min_samples: int = 5,
    optimize_for: OptimizeFor = "quality",
) -> WinnerSelection:
    """Pick the best variant among those with enough samples.

    Scores:
        quality: quality mean * (1 - escalation rate * 0.5)
        cost: quality mean / token mean
        latency: quality mean / latency mean * 1000

    The highest score wins, the earliest variant on ties. Confidence compares
    the winner's quality mean with the best quality mean among the other
    eligible variants. Fewer than two eligible variants yield no winner.
    """
    stats = get_experiment_stats(experiment, store)
    eligible = [s for s in stats.variants.values() if s.samples >= max(min_samples, 1)]

    if len(eligible) < 2:
        log.info(
            "experiment.winner.insufficient_data",
            experiment=experiment.name,
            eligible=len(eligible),
            min_samples=min_samples,
        )
        return WinnerSelection(winner=None, confidence=Confidence.INSUFFICIENT_DATA, stats=stats)

    scores = {s.variant_id: objective_score(s, optimize_for) for s in eligible}
    best = eligible[0]
    for candidate in eligible[1:]:
        if scores[candidate.variant_id] > scores[best.variant_id]:
            best = candidate

    runner_up_mean = max(_quality_mean(s) for s in eligible if s is not best)
    gap = _quality_mean(best) - runner_up_mean
    confidence = rate_confidence(best, gap)

    log.info(
        "experiment.winner.selected",
        experiment=experiment.name,
        winner=best.variant_id,
        confidence=confidence.value,
        optimize_for=optimize_for,
        gap=round(gap, 4),
    )
    return WinnerSelection(
        winner=experiment.get_variant(best.variant_id),
        confidence=confidence,
        stats=stats,
        scores=scores,
    )
