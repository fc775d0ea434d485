"""Gate command group for tiergate.

Score raw provider output with the quality gate, without calling a provider.
"""

import json
from pathlib import Path
import sys
from typing import Annotated

import typer

from tiergate.cli.formatters import console
from tiergate.cli.formatters.panels import print_error
from tiergate.cli.formatters.tables import (
    create_issues_table,
    create_key_value_table,
    print_table,
)
from tiergate.core.security import MAX_LLM_RESPONSE_LENGTH
from tiergate.gate import QUALITY_THRESHOLD, quality_gate
from tiergate.observability.logging import set_console_logging

app = typer.Typer(
    name="gate",
    help="Score provider output with the quality gate.",
    no_args_is_help=True,
)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.is_file():
        print_error(f"File not found: {source}")
        raise typer.Exit(2)
    return path.read_text(encoding="utf-8", errors="replace")


@app.command()
def score(
    source: Annotated[
        str,
        typer.Argument(help="File containing raw provider output, or '-' for stdin."),
    ],
    threshold: Annotated[
        float,
        typer.Option("--threshold", "-t", min=0.0, max=1.0, help="Passing score."),
    ] = QUALITY_THRESHOLD,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON."),
    ] = False,
) -> None:
    """Score raw text and exit non-zero when it fails the gate.

    Examples:

        tiergate gate score response.xml

        cat response.xml | tiergate gate score - --threshold 0.8
    """
    if as_json:
        set_console_logging(False)
    raw = _read_input(source)
    if len(raw) > MAX_LLM_RESPONSE_LENGTH:
        print_error(f"Input exceeds {MAX_LLM_RESPONSE_LENGTH} characters")
        raise typer.Exit(2)

    report = quality_gate(raw, threshold=threshold)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        verdict = "[success]PASS[/]" if report.passes_gate else "[error]FAIL[/]"
        print_table(
            create_key_value_table(
                {
                    "Score": f"{report.score:.3f}",
                    "Threshold": f"{report.threshold:.2f}",
                    "Verdict": verdict,
                    "Responses": len(report.responses),
                    "Critical issues": len(report.critical_issues),
                },
                "Quality Gate",
            )
        )
        if report.issues:
            print_table(create_issues_table(report.issues))
        else:
            console.print("[muted]No issues found.[/]")

    if not report.passes_gate:
        raise typer.Exit(1)


__all__ = ["app"]
