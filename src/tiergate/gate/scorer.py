"""Unit scorer: heuristic score for one parsed response unit.

Each unit starts at 1.0. Six independent checks deduct from it and every
failing check appends exactly one Issue, so one structural defect never
hides another:

1. Probability sanity (critical)
2. Rubric completeness across numbered, free-form and table formats
3. Aggregate ``Total: X/100`` presence
4. Substantive content (keywords or length)
5. Instruction injection (first matching rule only, critical)
6. Length sanity (truncation / runaway generation)

Surface-format checks are lenient: a rubric written in a different layout
costs little. Probability and injection checks are strict.
"""

from tiergate.gate.models import Issue, IssueCategory, ResponseUnit, Severity, UnitScore
from tiergate.gate.policy import (
    DEFAULT_POLICY,
    FREEFORM_RUBRIC,
    NUMBERED_RUBRIC,
    TABLE_RUBRIC,
    TOTAL_LINE,
    ScoringPolicy,
    match_rules,
)


def rubric_counts(text: str) -> tuple[int, int, int, bool]:
    """Count rubric-like lines in each accepted surface format.

    Returns:
        Tuple of (numbered, freeform, table, has_total).
    """
    return (
        len(NUMBERED_RUBRIC.findall(text)),
        len(FREEFORM_RUBRIC.findall(text)),
        len(TABLE_RUBRIC.findall(text)),
        TOTAL_LINE.search(text) is not None,
    )


def score_unit(
    unit: ResponseUnit,
    index: int,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> UnitScore:
    """Score a single response unit.

    Args:
        unit: The parsed unit.
        index: Position of the unit in the document, used in messages.
        policy: Penalty table and limits.

    Returns:
        UnitScore with the clamped score and the issues found.
    """
    issues: list[Issue] = []
    score = 1.0
    text = unit.text
    label = f"Response {index}"

    if not unit.has_valid_probability:
        issues.append(
            Issue(
                IssueCategory.PROBABILITY,
                Severity.CRITICAL,
                f"{label}: probability {unit.probability} out of range",
            )
        )
        score -= policy.probability_out_of_range

    numbered, freeform, table, has_total = rubric_counts(text)
    best = max(numbered, freeform, table)

    if best < policy.rubric_format_floor and not has_total:
        issues.append(
            Issue(
                IssueCategory.RUBRIC,
                Severity.INFO,
                f"{label}: non-standard scoring format ({best} score-like items found)",
            )
        )
        score -= policy.rubric_format_variance
    elif best < policy.rubric_items and numbered > 0:
        missing = max(0, policy.rubric_items - numbered)
        issues.append(
            Issue(
                IssueCategory.RUBRIC,
                Severity.WARNING,
                f"{label}: found {numbered}/{policy.rubric_items} rubric scores",
            )
        )
        score -= policy.rubric_incomplete * missing / policy.rubric_items

    if not has_total:
        if best >= policy.rubric_format_floor:
            issues.append(
                Issue(
                    IssueCategory.RUBRIC,
                    Severity.INFO,
                    f"{label}: missing Total: X/100 (may be format variant)",
                )
            )
            score -= policy.total_missing_variant
        else:
            issues.append(
                Issue(IssueCategory.RUBRIC, Severity.WARNING, f"{label}: missing Total: X/100")
            )
            score -= policy.total_missing

    if (
        policy.substantive_pattern.search(text) is None
        and len(text) < policy.substantive_length_floor
    ):
        issues.append(
            Issue(
                IssueCategory.STRUCTURE,
                Severity.WARNING,
                f"{label}: no pivot/alternative section and short content",
            )
        )
        score -= policy.thin_content

    for rule in match_rules(text, policy.injection_rules, first_match_only=True):
        issues.append(
            Issue(
                rule.category,
                rule.severity,
                f"{label}: prompt injection artifact detected ({rule.name})",
            )
        )
        score -= rule.penalty

    if len(text) < policy.min_text_length:
        issues.append(
            Issue(
                IssueCategory.FORMATTING,
                Severity.WARNING,
                f"{label}: suspiciously short ({len(text)} chars)",
            )
        )
        score -= policy.too_short
    if len(text) > policy.max_text_length:
        issues.append(
            Issue(
                IssueCategory.FORMATTING,
                Severity.WARNING,
                f"{label}: unusually long ({len(text)} chars)",
            )
        )
        score -= policy.too_long

    return UnitScore(score=max(0.0, score), issues=tuple(issues))
