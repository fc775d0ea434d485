"""tiergate CLI main entry point.

This module defines the main Typer application and registers
all command groups for the tiergate CLI.
"""

from typing import Annotated

import typer

from tiergate import __version__
from tiergate.cli.commands import config, experiment, gate, run
from tiergate.cli.formatters import console
from tiergate.observability.logging import LoggingConfig, configure_logging, get_mode_from_env

app = typer.Typer(
    name="tiergate",
    help="tiergate - Quality-gated escalation across LLM provider tiers",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(gate.app, name="gate")
app.add_typer(run.app, name="run")
app.add_typer(experiment.app, name="experiment")
app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]tiergate[/] version [green]{__version__}[/]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug events to stderr."),
    ] = False,
) -> None:
    """tiergate - Quality-gated escalation across LLM provider tiers.

    Requests go to the cheapest provider tier first; a heuristic quality
    gate decides whether the answer is returned or escalated.

    Use [bold cyan]tiergate COMMAND --help[/] for command-specific help.
    """
    configure_logging(
        LoggingConfig(
            mode=get_mode_from_env(),
            log_level="DEBUG" if verbose else "WARNING",
        )
    )


__all__ = ["app", "main"]
