"""Run command group for tiergate.

Route a request through the configured provider tiers.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer

from tiergate.cli.formatters import console
from tiergate.cli.formatters.panels import print_error, print_warning
from tiergate.cli.formatters.tables import (
    create_attempts_table,
    create_issues_table,
    create_key_value_table,
    print_table,
)
from tiergate.config import (
    CredentialsConfig,
    TiergateConfig,
    load_config,
    load_credentials_or_empty,
)
from tiergate.core.errors import ConfigError
from tiergate.core.security import MAX_REQUEST_LENGTH
from tiergate.gate import QualityGate
from tiergate.observability.logging import LoggingConfig as RuntimeLoggingConfig
from tiergate.observability.logging import (
    LogMode,
    configure_logging,
    get_current_config,
    set_console_logging,
)
from tiergate.routing import EscalationRouter, EvaluationResult, build_tiers

app = typer.Typer(
    name="run",
    help="Route requests through the provider tiers.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config.yaml (default: ~/.tiergate/config.yaml)."),
]


def apply_logging_settings(config: TiergateConfig) -> None:
    """Switch logging to the config file's settings unless --verbose asked for debug."""
    current = get_current_config()
    if current is not None and current.log_level == "DEBUG":
        return
    settings = config.logging
    configure_logging(
        RuntimeLoggingConfig(
            mode=LogMode(settings.mode),
            log_level=settings.level.upper(),
            enable_file_logging=settings.enable_file_logging,
        )
    )


def load_runtime(config_path: Path | None) -> tuple[TiergateConfig, CredentialsConfig]:
    """Load configuration and credentials, exiting with a message on error."""
    try:
        config = load_config(config_path)
        credentials_path = config_path.parent / "credentials.yaml" if config_path else None
        credentials = load_credentials_or_empty(credentials_path)
    except ConfigError as e:
        print_error(e.message, title="Configuration Error")
        raise typer.Exit(2) from e
    apply_logging_settings(config)
    return config, credentials


def validate_request(request: str) -> str:
    request = request.strip()
    if not request:
        print_error("Request must not be empty")
        raise typer.Exit(2)
    if len(request) > MAX_REQUEST_LENGTH:
        print_error(f"Request exceeds {MAX_REQUEST_LENGTH} characters")
        raise typer.Exit(2)
    return request


def print_evaluation(result: EvaluationResult) -> None:
    verdict = "[success]passed[/]" if result.passes_gate else "[warning]below threshold[/]"
    print_table(
        create_key_value_table(
            {
                "Provider": result.provider,
                "Model": result.model,
                "Quality": f"{result.quality:.3f} ({verdict})",
                "Escalated": "yes" if result.escalated else "no",
                "Tokens": result.usage.total_tokens,
                "Total time": f"{result.timing.total:.0f} ms",
            },
            "Evaluation",
        )
    )
    print_table(create_attempts_table(result.attempts))
    if result.issues:
        print_table(create_issues_table(result.issues))
    for index, unit in enumerate(result.responses, start=1):
        console.rule(f"Response {index} (p={unit.probability})")
        console.print(unit.text, markup=False)


@app.command()
def evaluate(
    request: Annotated[str, typer.Argument(help="Request to send to the providers.")],
    config_path: ConfigOption = None,
    no_escalation: Annotated[
        bool,
        typer.Option("--no-escalation", help="Return the first answer even if it fails the gate."),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON."),
    ] = False,
) -> None:
    """Evaluate a request, escalating to stronger tiers when the gate fails.

    Examples:

        tiergate run evaluate "A marketplace for renting camera gear"

        tiergate run evaluate "..." --no-escalation --json
    """
    if as_json:
        set_console_logging(False)
    request = validate_request(request)
    config, credentials = load_runtime(config_path)

    tiers = build_tiers(config, credentials)
    if not tiers:
        print_error("No provider tiers configured", title="Configuration Error")
        raise typer.Exit(2)

    router = EscalationRouter(
        tiers,
        QualityGate(threshold=config.gate.threshold, policy=config.gate.build_policy()),
        allow_escalation=config.router.allow_escalation and not no_escalation,
    )
    result = asyncio.run(router.evaluate(request))

    if result.is_err:
        error = result.error
        title = "Configuration Error" if isinstance(error, ConfigError) else "Provider Error"
        print_error(error.message, title=title)
        raise typer.Exit(1)

    evaluation = result.value
    if as_json:
        typer.echo(json.dumps(evaluation.to_dict(), indent=2))
        return

    print_evaluation(evaluation)
    if evaluation.escalated:
        print_warning("\n".join(evaluation.escalation_reasons), title="Escalated")


__all__ = ["app", "apply_logging_settings", "load_runtime", "validate_request"]
