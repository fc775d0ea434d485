"""Quality gate: composite pass/fail verdict for one provider output.

Document-level checks (tag balance, unit count, probability sum, cross-unit
consistency) produce a document score; unit scores are averaged; the
composite is ``clamp01(document * 0.4 + mean(units) * 0.6)`` so content
quality outweighs a single mis-tagged boundary.

QUALITY_THRESHOLD (0.70) is the stable default every caller can rely on.

The gate is a pure function of its input: it holds no mutable state and
calling it twice on the same text yields equal reports.
"""

import time

from tiergate.gate.models import Issue, IssueCategory, QualityReport, Severity
from tiergate.gate.parser import count_tags, normalize_output, parse_responses
from tiergate.gate.policy import DEFAULT_POLICY, NUMBERED_MARKER, ScoringPolicy
from tiergate.gate.scorer import score_unit
from tiergate.observability.logging import get_logger

log = get_logger(__name__)

QUALITY_THRESHOLD = 0.70


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class QualityGate:
    """Scores raw provider output against a threshold.

    Example:
        gate = QualityGate(threshold=0.75)
        report = gate.gate(completion.content)
        if not report.passes_gate:
            ...escalate...
    """

    def __init__(
        self,
        threshold: float = QUALITY_THRESHOLD,
        policy: ScoringPolicy | None = None,
    ) -> None:
        self._threshold = threshold
        self._policy = policy or DEFAULT_POLICY

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def policy(self) -> ScoringPolicy:
        return self._policy

    def with_threshold(self, threshold: float) -> "QualityGate":
        """Same policy, different threshold (used for per-variant thresholds)."""
        return QualityGate(threshold=threshold, policy=self._policy)

    def gate(self, raw: str | bytes | None) -> QualityReport:
        """Run every check on ``raw`` and return a fresh report."""
        policy = self._policy
        text = normalize_output(raw)
        issues: list[Issue] = []
        document_score = 1.0

        opened, closed = count_tags(text)
        if opened != closed:
            issues.append(
                Issue(
                    IssueCategory.XML,
                    Severity.CRITICAL,
                    f"Mismatched <response> tags: {opened} open, {closed} close",
                )
            )
            document_score -= policy.tag_mismatch

        responses = parse_responses(text)
        if not responses:
            issues.append(
                Issue(IssueCategory.XML, Severity.CRITICAL, "No valid <response> blocks parsed")
            )
            log.debug("gate.report.created", score=0.0, units=0, passes_gate=False)
            return QualityReport(
                score=0.0,
                issues=tuple(issues),
                responses=(),
                passes_gate=False,
                threshold=self._threshold,
            )

        if len(responses) < policy.min_units:
            issues.append(
                Issue(
                    IssueCategory.COMPLETENESS,
                    Severity.WARNING,
                    f"Only {len(responses)} responses (expected {policy.expected_units})",
                )
            )
            document_score -= policy.too_few_units

        probability_sum = sum(r.probability for r in responses)
        if probability_sum > 1.0:
            issues.append(
                Issue(
                    IssueCategory.PROBABILITY,
                    Severity.CRITICAL,
                    f"Probability sum {probability_sum:.3f} exceeds 1.0",
                )
            )
            document_score -= policy.probability_sum

        unit_scores = [score_unit(unit, i, policy) for i, unit in enumerate(responses)]
        mean_unit_score = sum(u.score for u in unit_scores) / len(unit_scores)
        for unit_score in unit_scores:
            issues.extend(unit_score.issues)

        numbered = [NUMBERED_MARKER.search(r.text) is not None for r in responses]
        if any(numbered) and not all(numbered):
            issues.append(
                Issue(
                    IssueCategory.CONSISTENCY,
                    Severity.WARNING,
                    "Inconsistent scoring structure across responses",
                )
            )
            document_score -= policy.inconsistent_structure

        composite = _clamp01(
            document_score * policy.document_weight + mean_unit_score * policy.unit_weight
        )
        report = QualityReport(
            score=round(composite, 3),
            issues=tuple(issues),
            responses=tuple(responses),
            passes_gate=composite >= self._threshold,
            threshold=self._threshold,
        )
        log.debug(
            "gate.report.created",
            score=report.score,
            units=len(responses),
            issue_count=len(issues),
            passes_gate=report.passes_gate,
        )
        return report

    def timed_gate(self, raw: str | bytes | None) -> tuple[QualityReport, float]:
        """Run the gate and also return how long it took, in milliseconds."""
        start = time.perf_counter()
        report = self.gate(raw)
        return report, (time.perf_counter() - start) * 1000


def quality_gate(
    raw: str | bytes | None,
    threshold: float = QUALITY_THRESHOLD,
    policy: ScoringPolicy | None = None,
) -> QualityReport:
    """Score ``raw`` with a one-off QualityGate."""
    return QualityGate(threshold=threshold, policy=policy).gate(raw)
