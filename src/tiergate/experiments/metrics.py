"""Append-only metric storage and per-variant aggregation.

The MetricsStore is owned by the caller: create it at service start, pass it
to the ExperimentEngine, and drop or clear() it at shutdown. Appends are
atomic under a lock; stats are always recomputed from the full sample lists.
"""

from collections import defaultdict
from collections.abc import Sequence
import math
import threading

from tiergate.experiments.models import (
    Experiment,
    ExperimentStats,
    LatencyStats,
    MetricSample,
    QualityStats,
    TokenStats,
    VariantStats,
)
from tiergate.observability.logging import get_logger

log = get_logger(__name__)


class MetricsStore:
    """Thread-safe, append-only samples keyed by experiment and variant."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._samples: defaultdict[tuple[str, str], list[MetricSample]] = defaultdict(list)

    def record(self, experiment: str, variant_id: str, sample: MetricSample) -> None:
        """Append one sample."""
        with self._lock:
            self._samples[(experiment, variant_id)].append(sample)
        log.debug(
            "experiment.metric.recorded",
            experiment=experiment,
            variant=variant_id,
            quality=sample.quality_score,
            escalated=sample.escalated,
        )

    def samples(self, experiment: str, variant_id: str) -> tuple[MetricSample, ...]:
        """Snapshot of a variant's samples in recording order."""
        with self._lock:
            return tuple(self._samples.get((experiment, variant_id), ()))

    def total_samples(self, experiment: str) -> int:
        with self._lock:
            return sum(len(v) for (name, _), v in self._samples.items() if name == experiment)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()


def percentile(values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile: index ceil(n*p) - 1 of the sorted values.

    Returns 0.0 for an empty sequence.
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    index = max(0, math.ceil(len(ordered) * p) - 1)
    return ordered[min(index, len(ordered) - 1)]


def _mean(values: Sequence[float]) -> float:
    return math.fsum(values) / len(values) if values else 0.0


def get_variant_stats(
    variant_id: str, weight: float, samples: Sequence[MetricSample]
) -> VariantStats:
    if not samples:
        return VariantStats(variant_id=variant_id, samples=0, weight=weight)

    qualities = [s.quality_score for s in samples]
    latencies = [s.latency_ms for s in samples]
    tokens = [s.token_count for s in samples]
    n = len(samples)

    return VariantStats(
        variant_id=variant_id,
        samples=n,
        weight=weight,
        quality=QualityStats(
            mean=_mean(qualities),
            min=min(qualities),
            max=max(qualities),
            p50=percentile(qualities, 0.5),
            p95=percentile(qualities, 0.95),
        ),
        escalation_rate=sum(1 for s in samples if s.escalated) / n,
        schema_pass_rate=sum(1 for s in samples if s.schema_valid) / n,
        latency=LatencyStats(
            mean=_mean(latencies),
            p50=percentile(latencies, 0.5),
            p95=percentile(latencies, 0.95),
        ),
        tokens=TokenStats(mean=_mean(tokens), total=sum(tokens)),
    )


def get_experiment_stats(experiment: Experiment, store: MetricsStore) -> ExperimentStats:
    """Aggregate every variant's samples, in variant order."""
    variants = {
        v.id: get_variant_stats(v.id, v.weight or 0.0, store.samples(experiment.name, v.id))
        for v in experiment.variants
    }
    return ExperimentStats(
        experiment=experiment.name,
        total_samples=sum(s.samples for s in variants.values()),
        started_at=experiment.started_at,
        variants=variants,
    )
