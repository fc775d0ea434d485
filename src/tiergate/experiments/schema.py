"""Output schema validation for experiment variants.

A variant's output_schema is any type pydantic's TypeAdapter accepts. The
parsed units are validated as a list of {"text", "probability"} dicts, and
every validation error becomes one schema warning Issue. Schema failures are
tracked for analysis only and never force escalation.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from tiergate.experiments.models import Variant
from tiergate.gate.models import Issue, IssueCategory, ResponseUnit, Severity


class UnitModel(BaseModel):
    """Schema for one well-formed response unit."""

    text: str = Field(min_length=50)
    probability: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)


BUILTIN_SCHEMAS: dict[str, Any] = {
    "units": list[UnitModel],
}


@dataclass(frozen=True, slots=True)
class SchemaValidation:
    """Outcome of validating a variant's output."""

    valid: bool
    issues: tuple[Issue, ...] = ()


def _format_path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(p) for p in loc) or "$"


def validate_output(variant: Variant, responses: Sequence[ResponseUnit]) -> SchemaValidation:
    """Validate parsed units against the variant's output schema.

    Variants without a schema are always valid.
    """
    if variant.output_schema is None:
        return SchemaValidation(valid=True)

    adapter: TypeAdapter[Any] = TypeAdapter(variant.output_schema)
    try:
        adapter.validate_python([r.to_dict() for r in responses])
    except PydanticValidationError as e:
        issues = tuple(
            Issue(
                category=IssueCategory.SCHEMA,
                severity=Severity.WARNING,
                message=f"{_format_path(error['loc'])}: {error['msg']}",
            )
            for error in e.errors()
        )
        return SchemaValidation(valid=False, issues=issues)
    return SchemaValidation(valid=True)
