"""Unit tests for tiergate.experiments.schema module."""

import math
from typing import Annotated

from pydantic import Field

from tiergate.experiments import BUILTIN_SCHEMAS, UnitModel, Variant, validate_output
from tiergate.gate import IssueCategory, ResponseUnit, Severity

LONG = "A tool library for apartment buildings with shared lockers."


def _variant(schema=BUILTIN_SCHEMAS["units"]) -> Variant:
    return Variant(id="v", provider="minimax", output_schema=schema)


class TestValidateOutput:
    """Test validate_output."""

    def test_no_schema_is_valid(self) -> None:
        result = validate_output(Variant(id="v", provider="minimax"), [ResponseUnit("", 5.0)])

        assert result.valid is True
        assert result.issues == ()

    def test_valid_units(self) -> None:
        units = [ResponseUnit(LONG, 0.1), ResponseUnit(LONG + " Second.", 0.05)]

        assert validate_output(_variant(), units).valid is True

    def test_short_text_fails(self) -> None:
        """Unit text needs at least 50 characters."""
        result = validate_output(_variant(), [ResponseUnit("x" * 49, 0.1)])

        assert result.valid is False
        assert result.issues[0].message.startswith("0.text: ")
        assert validate_output(_variant(), [ResponseUnit("x" * 50, 0.1)]).valid is True

    def test_each_error_is_a_schema_warning(self) -> None:
        units = [ResponseUnit(LONG, 0.1), ResponseUnit("", 1.5)]

        result = validate_output(_variant(), units)

        assert result.valid is False
        assert len(result.issues) == 2
        assert all(i.category == IssueCategory.SCHEMA for i in result.issues)
        assert all(i.severity == Severity.WARNING for i in result.issues)
        messages = sorted(i.message for i in result.issues)
        assert messages[0].startswith("1.probability: ")
        assert messages[1].startswith("1.text: ")

    def test_nan_probability_fails(self) -> None:
        result = validate_output(_variant(), [ResponseUnit(LONG, math.nan)])

        assert result.valid is False
        assert result.issues[0].message.startswith("0.probability: ")

    def test_root_error_path(self) -> None:
        """Errors on the whole list are reported at '$'."""
        schema = Annotated[list[UnitModel], Field(min_length=5)]
        units = [ResponseUnit(LONG, 0.1), ResponseUnit(LONG, 0.1)]

        result = validate_output(_variant(schema), units)

        assert result.valid is False
        assert result.issues[0].message.startswith("$: ")
