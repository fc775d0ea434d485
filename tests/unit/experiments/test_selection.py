"""Unit tests for tiergate.experiments.selection module."""

import math
import random
from unittest.mock import MagicMock

import pytest

from tiergate.config.models import ExperimentConfig, VariantConfig
from tiergate.core.errors import ValidationError
from tiergate.experiments import (
    BUILTIN_SCHEMAS,
    Variant,
    define_experiment,
    experiment_from_config,
    select_variant,
)


def _fixed_rng(draw: float) -> MagicMock:
    rng = MagicMock(spec=random.Random)
    rng.random.return_value = draw
    return rng


class TestDefineExperiment:
    """Test define_experiment validation and normalization."""

    def test_weights_normalized(self) -> None:
        result = define_experiment(
            "prompt-test",
            [Variant(id="a", provider="minimax", weight=3), Variant(id="b", provider="openai", weight=1)],
        )

        assert result.is_ok
        weights = [v.weight for v in result.value.variants]
        assert weights == pytest.approx([0.75, 0.25])
        assert math.fsum(weights) == pytest.approx(1.0)

    def test_missing_weight_counts_as_one(self) -> None:
        result = define_experiment(
            "e",
            [Variant(id="a", provider="minimax"), Variant(id="b", provider="openai", weight=3)],
        )

        assert [v.weight for v in result.value.variants] == pytest.approx([0.25, 0.75])

    def test_variant_order_kept(self) -> None:
        variants = [Variant(id=name, provider="minimax") for name in ("z", "a", "m")]

        result = define_experiment("e", variants)

        assert [v.id for v in result.value.variants] == ["z", "a", "m"]

    def test_empty_variants_rejected(self) -> None:
        result = define_experiment("e", [])

        assert result.is_err
        assert isinstance(result.error, ValidationError)

    def test_duplicate_ids_rejected(self) -> None:
        result = define_experiment(
            "e", [Variant(id="a", provider="minimax"), Variant(id="a", provider="openai")]
        )

        assert result.is_err
        assert "Duplicate variant ids" in result.error.message

    @pytest.mark.parametrize("weight", [0, -1, math.inf, math.nan])
    def test_invalid_weight_rejected(self, weight: float) -> None:
        result = define_experiment("e", [Variant(id="a", provider="minimax", weight=weight)])

        assert result.is_err
        assert result.error.field == "variants.a.weight"

    def test_started_at_is_set(self) -> None:
        experiment = define_experiment("e", [Variant(id="a", provider="minimax")]).value

        assert experiment.started_at.tzinfo is not None


class TestSelectVariant:
    """Test weighted selection."""

    def _experiment(self):
        return define_experiment(
            "e",
            [
                Variant(id="a", provider="minimax", weight=0.5),
                Variant(id="b", provider="openai", weight=0.3),
                Variant(id="c", provider="anthropic", weight=0.2),
            ],
        ).value

    @pytest.mark.parametrize(
        ("draw", "expected"),
        [(0.0, "a"), (0.5, "a"), (0.51, "b"), (0.79, "b"), (0.81, "c"), (0.999, "c")],
    )
    def test_cumulative_bands(self, draw: float, expected: str) -> None:
        assert select_variant(self._experiment(), _fixed_rng(draw)).id == expected

    def test_rounding_shortfall_returns_last(self) -> None:
        experiment = self._experiment()

        assert select_variant(experiment, _fixed_rng(1.0000001)).id == "c"

    def test_distribution_follows_weights(self) -> None:
        experiment = self._experiment()
        rng = random.Random(1234)

        picks = [select_variant(experiment, rng).id for _ in range(5000)]

        assert picks.count("a") / 5000 == pytest.approx(0.5, abs=0.05)
        assert picks.count("c") / 5000 == pytest.approx(0.2, abs=0.05)


class TestExperimentFromConfig:
    """Test experiment_from_config."""

    def test_builds_variants(self) -> None:
        config = ExperimentConfig(
            name="prompts",
            fallback="anthropic",
            variants=[
                VariantConfig(
                    id="terse",
                    provider="minimax",
                    system_prompt="Be terse.",
                    model="MiniMax-M1",
                    quality_threshold=0.8,
                    output_schema="units",
                ),
                VariantConfig(id="plain", provider="openai"),
            ],
        )

        experiment = experiment_from_config(config).value

        terse = experiment.get_variant("terse")
        assert terse is not None
        assert terse.prompt_config.system_prompt == "Be terse."
        assert terse.prompt_config.model == "MiniMax-M1"
        assert terse.quality_threshold == 0.8
        assert terse.output_schema is BUILTIN_SCHEMAS["units"]
        assert experiment.get_variant("plain").output_schema is None
        assert experiment.get_variant("missing") is None

    def test_empty_variant_list_is_error(self) -> None:
        config = ExperimentConfig(name="empty", fallback="anthropic")

        assert experiment_from_config(config).is_err
