"""Experiment definition and weighted variant selection."""

from collections.abc import Sequence
from dataclasses import replace
import math
import random

from tiergate.config.models import ExperimentConfig
from tiergate.core.errors import ValidationError
from tiergate.core.types import Result
from tiergate.experiments.models import Experiment, PromptConfig, Variant
from tiergate.experiments.schema import BUILTIN_SCHEMAS
from tiergate.observability.logging import get_logger

log = get_logger(__name__)


def define_experiment(
    name: str, variants: Sequence[Variant]
) -> Result[Experiment, ValidationError]:
    """Define an experiment, normalizing variant weights to sum to 1.

    A variant without a weight counts as weight 1.

    Args:
        name: Experiment name.
        variants: Variants in selection order.

    Returns:
        Result with the Experiment, or ValidationError for an empty variant
        list, duplicate ids, or a non-positive or non-finite weight.
    """
    if not variants:
        return Result.err(
            ValidationError("Experiment must have at least one variant", field="variants")
        )

    ids = [v.id for v in variants]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        return Result.err(
            ValidationError(
                f"Duplicate variant ids: {duplicates}",
                field="variants.id",
                value=duplicates,
            )
        )

    raw_weights: list[float] = []
    for variant in variants:
        weight = 1.0 if variant.weight is None else variant.weight
        if not math.isfinite(weight) or weight <= 0:
            return Result.err(
                ValidationError(
                    f"Variant '{variant.id}' weight must be a positive finite number",
                    field=f"variants.{variant.id}.weight",
                    value=variant.weight,
                )
            )
        raw_weights.append(weight)

    total = math.fsum(raw_weights)
    normalized = tuple(
        replace(v, weight=w / total) for v, w in zip(variants, raw_weights, strict=True)
    )

    log.info(
        "experiment.definition.created",
        experiment=name,
        variants={v.id: round(v.weight or 0.0, 4) for v in normalized},
    )
    return Result.ok(Experiment(name=name, variants=normalized))


def select_variant(experiment: Experiment, rng: random.Random | None = None) -> Variant:
    """Pick a variant with one uniform draw against cumulative weights.

    The last variant is returned when rounding leaves the cumulative sum
    short of the draw. Selection is stateless across calls.
    """
    draw = (rng or random).random()
    cumulative = 0.0
    for variant in experiment.variants:
        cumulative += variant.weight or 0.0
        if draw <= cumulative:
            return variant
    return experiment.variants[-1]


def experiment_from_config(config: ExperimentConfig) -> Result[Experiment, ValidationError]:
    """Define an experiment from its YAML configuration."""
    variants = [
        Variant(
            id=v.id,
            provider=v.provider,
            weight=v.weight,
            prompt_config=PromptConfig(system_prompt=v.system_prompt, model=v.model),
            output_schema=BUILTIN_SCHEMAS[v.output_schema] if v.output_schema else None,
            quality_threshold=v.quality_threshold,
        )
        for v in config.variants
    ]
    return define_experiment(config.name, variants)
