"""Data models for the quality gate.

All models are frozen dataclasses: a QualityReport is built fresh for every
gate invocation and nothing downstream mutates it.

Classes:
    IssueCategory: What kind of defect an Issue describes
    Severity: How serious an Issue is
    ResponseUnit: One parsed <response> block
    Issue: One defect found while scoring
    UnitScore: Score and issues for a single ResponseUnit
    QualityReport: Composite verdict for a full provider output
"""

from dataclasses import dataclass
from enum import StrEnum
import math
from typing import Any


class IssueCategory(StrEnum):
    """Category of a quality issue."""

    XML = "xml"
    COMPLETENESS = "completeness"
    PROBABILITY = "probability"
    RUBRIC = "rubric"
    STRUCTURE = "structure"
    INJECTION = "injection"
    FORMATTING = "formatting"
    CONSISTENCY = "consistency"
    SCHEMA = "schema"


class Severity(StrEnum):
    """Severity of a quality issue."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class ResponseUnit:
    """One (text, probability) pair parsed from provider output.

    Attributes:
        text: Stripped body of the <text> element.
        probability: Provider-declared probability. ``nan`` when the
            element held no number.
    """

    text: str
    probability: float

    @property
    def has_valid_probability(self) -> bool:
        return not math.isnan(self.probability) and 0.0 <= self.probability <= 1.0

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form; a non-finite probability becomes None."""
        probability = self.probability if math.isfinite(self.probability) else None
        return {"text": self.text, "probability": probability}


@dataclass(frozen=True, slots=True)
class Issue:
    """A single defect reported by the gate.

    Attributes:
        category: Which check produced it.
        severity: info, warning or critical.
        message: Human-readable description.
    """

    category: IssueCategory
    severity: Severity
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class UnitScore:
    """Per-unit result from the unit scorer.

    Attributes:
        score: Unit score clamped to [0.0, 1.0].
        issues: Issues found in this unit, in check order.
    """

    score: float
    issues: tuple[Issue, ...] = ()


@dataclass(frozen=True, slots=True)
class QualityReport:
    """Composite verdict for one provider output.

    Attributes:
        score: Composite score in [0.0, 1.0], rounded to 3 decimals.
        issues: Document-level and per-unit issues in check order.
        responses: Parsed response units in document order.
        passes_gate: True when the unrounded composite met the threshold.
        threshold: Threshold the verdict was taken against.
    """

    score: float
    issues: tuple[Issue, ...]
    responses: tuple[ResponseUnit, ...]
    passes_gate: bool
    threshold: float

    @property
    def critical_issues(self) -> tuple[Issue, ...]:
        return tuple(i for i in self.issues if i.severity == Severity.CRITICAL)

    def issues_in(self, category: IssueCategory) -> tuple[Issue, ...]:
        return tuple(i for i in self.issues if i.category == category)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "issues": [i.to_dict() for i in self.issues],
            "responses": [r.to_dict() for r in self.responses],
            "passesGate": self.passes_gate,
            "threshold": self.threshold,
        }
