"""Rich tables for gate reports, routing attempts and experiment stats."""

from collections.abc import Sequence
from typing import Any

from rich.table import Table

from tiergate.cli.formatters import console
from tiergate.experiments.models import ExperimentStats
from tiergate.gate.models import Issue, Severity
from tiergate.routing.models import TierAttempt

_SEVERITY_STYLES = {
    Severity.INFO: "muted",
    Severity.WARNING: "warning",
    Severity.CRITICAL: "error",
}


def create_table(
    title: str | None = None,
    *,
    show_header: bool = True,
    show_lines: bool = False,
    border_style: str = "blue",
    header_style: str = "bold cyan",
    row_styles: list[str] | None = None,
) -> Table:
    """Create a Rich Table with consistent tiergate styling.

    Args:
        title: Optional table title.
        show_header: Whether to show the header row.
        show_lines: Whether to show lines between rows.
        border_style: Style for table borders.
        header_style: Style for header row.
        row_styles: Alternating row styles (default: subtle alternation).

    Returns:
        Configured Rich Table instance.
    """
    if row_styles is None:
        row_styles = ["", "dim"]

    return Table(
        title=title,
        show_header=show_header,
        show_lines=show_lines,
        border_style=border_style,
        header_style=header_style,
        row_styles=row_styles,
    )


def create_key_value_table(
    data: dict[str, Any],
    title: str | None = None,
    *,
    key_style: str = "cyan",
    value_style: str = "",
) -> Table:
    """Create a two-column table for key-value data.

    Example:
        table = create_key_value_table({"Score": 0.82, "Passes": True}, "Gate")
        print_table(table)
    """
    table = create_table(title, show_header=False)
    table.add_column("Key", style=key_style, no_wrap=True)
    table.add_column("Value", style=value_style)

    for key, value in data.items():
        table.add_row(str(key), str(value))

    return table


def create_issues_table(issues: Sequence[Issue], title: str | None = "Issues") -> Table:
    """One row per gate issue, colored by severity."""
    table = create_table(title)
    table.add_column("Severity", justify="center", no_wrap=True)
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Message")

    for issue in issues:
        style = _SEVERITY_STYLES[issue.severity]
        table.add_row(f"[{style}]{issue.severity.value}[/]", issue.category.value, issue.message)

    return table


def create_attempts_table(attempts: Sequence[TierAttempt], title: str | None = "Tiers") -> Table:
    """One row per tier the router tried."""
    table = create_table(title)
    table.add_column("Tier", style="cyan", no_wrap=True)
    table.add_column("Model")
    table.add_column("Latency", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Quality", justify="right")
    table.add_column("Outcome")

    for attempt in attempts:
        if attempt.error is not None:
            quality = "-"
            outcome = f"[error]error: {attempt.error.message}[/]"
        else:
            assert attempt.report is not None
            quality = f"{attempt.report.score:.3f}"
            outcome = "[success]passed[/]" if attempt.report.passes_gate else "[warning]failed[/]"
        table.add_row(
            attempt.tier,
            attempt.model,
            f"{attempt.latency_ms:.0f} ms",
            str(attempt.usage.total_tokens),
            quality,
            outcome,
        )

    return table


def create_variant_stats_table(stats: ExperimentStats) -> Table:
    """One row per variant with its aggregated metrics."""
    table = create_table(f"Experiment: {stats.experiment}")
    table.add_column("Variant", style="cyan", no_wrap=True)
    table.add_column("Weight", justify="right")
    table.add_column("Samples", justify="right")
    table.add_column("Quality mean", justify="right")
    table.add_column("p50 / p95", justify="right")
    table.add_column("Escalation", justify="right")
    table.add_column("Schema pass", justify="right")
    table.add_column("Latency mean", justify="right")
    table.add_column("Tokens total", justify="right")

    for variant_id, s in stats.variants.items():
        if s.quality is None or s.latency is None or s.tokens is None:
            table.add_row(variant_id, f"{s.weight:.2f}", "0", "-", "-", "-", "-", "-", "-")
            continue
        table.add_row(
            variant_id,
            f"{s.weight:.2f}",
            str(s.samples),
            f"{s.quality.mean:.3f}",
            f"{s.quality.p50:.3f} / {s.quality.p95:.3f}",
            f"{(s.escalation_rate or 0.0):.0%}",
            f"{(s.schema_pass_rate or 0.0):.0%}",
            f"{s.latency.mean:.0f} ms",
            str(s.tokens.total),
        )

    return table


def print_table(table: Table) -> None:
    """Print a Rich Table to the shared console."""
    console.print(table)


__all__ = [
    "create_table",
    "create_key_value_table",
    "create_issues_table",
    "create_attempts_table",
    "create_variant_stats_table",
    "print_table",
]
