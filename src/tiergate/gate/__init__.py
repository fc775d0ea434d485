"""Quality gate for tiergate.

Parses the <response>/<text>/<probability> grammar out of provider output,
scores each unit with a table of heuristics, and folds everything into one
composite pass/fail verdict.

Main exports:
    quality_gate / QualityGate: the gate itself
    QUALITY_THRESHOLD: stable default threshold (0.70)
    parse_responses: grammar parser
    score_unit: per-unit heuristics
    ScoringPolicy / HeuristicRule: tunable penalty and rule tables
"""

from tiergate.gate.models import (
    Issue,
    IssueCategory,
    QualityReport,
    ResponseUnit,
    Severity,
    UnitScore,
)
from tiergate.gate.parser import count_tags, parse_probability, parse_responses
from tiergate.gate.policy import (
    DEFAULT_INJECTION_RULES,
    DEFAULT_POLICY,
    HeuristicRule,
    ScoringPolicy,
    match_rules,
)
from tiergate.gate.quality_gate import QUALITY_THRESHOLD, QualityGate, quality_gate
from tiergate.gate.scorer import rubric_counts, score_unit

__all__ = [
    # Models
    "Issue",
    "IssueCategory",
    "QualityReport",
    "ResponseUnit",
    "Severity",
    "UnitScore",
    # Parser
    "count_tags",
    "parse_probability",
    "parse_responses",
    # Policy
    "DEFAULT_INJECTION_RULES",
    "DEFAULT_POLICY",
    "HeuristicRule",
    "ScoringPolicy",
    "match_rules",
    # Scorer and gate
    "rubric_counts",
    "score_unit",
    "QUALITY_THRESHOLD",
    "QualityGate",
    "quality_gate",
]
