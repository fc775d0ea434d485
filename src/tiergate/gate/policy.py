"""Scoring policy for the quality gate.

Penalty weights and pattern tables live here as data so they can be tuned
from configuration and each rule can be tested on its own. The defaults are
hand-tuned; retune them through ``ScoringPolicy.with_overrides`` rather than
by editing the scorer.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
import re

from tiergate.gate.models import IssueCategory, Severity


@dataclass(frozen=True, slots=True)
class HeuristicRule:
    """A single pattern-based check.

    Attributes:
        name: Stable identifier used in issue messages and tests.
        pattern: Compiled pattern that triggers the rule.
        category: Issue category appended when the rule fires.
        severity: Issue severity appended when the rule fires.
        penalty: Amount deducted from the unit score.
    """

    name: str
    pattern: re.Pattern[str]
    category: IssueCategory
    severity: Severity
    penalty: float

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def match_rules(
    text: str,
    rules: Iterable[HeuristicRule],
    *,
    first_match_only: bool = False,
) -> list[HeuristicRule]:
    """Evaluate ``rules`` against ``text`` in order.

    Args:
        text: Text to inspect.
        rules: Rules in evaluation order.
        first_match_only: Stop after the first rule that fires.

    Returns:
        The rules that fired, in order.
    """
    fired: list[HeuristicRule] = []
    for rule in rules:
        if rule.matches(text):
            fired.append(rule)
            if first_match_only:
                break
    return fired


def _injection_rule(name: str, pattern: str) -> HeuristicRule:
    return HeuristicRule(
        name=name,
        pattern=re.compile(pattern, re.IGNORECASE),
        category=IssueCategory.INJECTION,
        severity=Severity.CRITICAL,
        penalty=0.4,
    )


DEFAULT_INJECTION_RULES: tuple[HeuristicRule, ...] = (
    _injection_rule("system_role_marker", r"\bsystem\s*:\s*"),
    _injection_rule("assistant_role_marker", r"\bassistant\s*:\s*"),
    _injection_rule("ignore_instructions", r"\bignore\s+(?:previous|above|all)\s+instructions"),
    _injection_rule("role_reassignment", r"\byou\s+are\s+(?:now|a)\b"),
    _injection_rule("do_not_follow", r"\bdo\s+not\s+follow"),
    _injection_rule("control_pseudo_tag", r"</?(?:system|instruction|prompt)>"),
)

# Rubric surface formats. Free-form labels are capped in length so scoring
# stays linear on long unbroken prose.
NUMBERED_RUBRIC = re.compile(r"^\d+\)\s+.+:\s+\d+", re.MULTILINE)
FREEFORM_RUBRIC = re.compile(r"\b\w[\w\s]{1,80}:\s+\d+(?:/10)?", re.MULTILINE)
TABLE_RUBRIC = re.compile(r"\|\s*\d+\s*\|")
TOTAL_LINE = re.compile(r"Total:\s*(\d+)/100")
NUMBERED_MARKER = re.compile(r"^\d+\)\s+", re.MULTILINE)

DEFAULT_SUBSTANTIVE_PATTERN = re.compile(
    r"(?:pivot|alternative|reframe|high.leverage|polar|how\s+it\s+works|integration)",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class ScoringPolicy:
    """Penalty table and limits used by the unit scorer and the gate.

    Unit-level penalties:
        probability_out_of_range, rubric_format_variance, rubric_incomplete
        (scaled by the missing fraction), total_missing_variant,
        total_missing, thin_content, injection, too_short, too_long.

    Document-level penalties:
        tag_mismatch, too_few_units, probability_sum, inconsistent_structure.

    Composite weighting:
        document_weight and unit_weight (0.4 / 0.6).
    """

    probability_out_of_range: float = 0.3
    rubric_format_variance: float = 0.05
    rubric_incomplete: float = 0.1
    total_missing_variant: float = 0.03
    total_missing: float = 0.1
    thin_content: float = 0.1
    injection: float = 0.4
    too_short: float = 0.2
    too_long: float = 0.05

    tag_mismatch: float = 0.3
    too_few_units: float = 0.15
    probability_sum: float = 0.2
    inconsistent_structure: float = 0.1

    document_weight: float = 0.4
    unit_weight: float = 0.6

    rubric_items: int = 10
    rubric_format_floor: int = 5
    min_units: int = 3
    expected_units: int = 5
    min_text_length: int = 100
    max_text_length: int = 10_000
    substantive_length_floor: int = 300

    substantive_pattern: re.Pattern[str] = DEFAULT_SUBSTANTIVE_PATTERN
    injection_rules: tuple[HeuristicRule, ...] = field(default=DEFAULT_INJECTION_RULES)

    @classmethod
    def tunable_fields(cls) -> frozenset[str]:
        """Names of numeric fields that configuration may override."""
        return frozenset(
            f.name for f in fields(cls) if f.name not in {"substantive_pattern", "injection_rules"}
        )

    def with_overrides(self, overrides: Mapping[str, float]) -> "ScoringPolicy":
        """Return a copy with numeric fields replaced.

        Raises:
            KeyError: If an override names an unknown field.
        """
        unknown = set(overrides) - self.tunable_fields()
        if unknown:
            raise KeyError(f"Unknown scoring policy fields: {sorted(unknown)}")
        if "injection" in overrides:
            rules = tuple(replace(r, penalty=overrides["injection"]) for r in self.injection_rules)
            return replace(self, **overrides, injection_rules=rules)  # type: ignore[arg-type]
        return replace(self, **overrides)  # type: ignore[arg-type]


DEFAULT_POLICY = ScoringPolicy()
