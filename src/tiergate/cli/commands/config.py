"""Config command group for tiergate.

Create and inspect configuration files.
"""

from pathlib import Path
from typing import Annotated

import typer

from tiergate.cli.formatters.panels import print_error, print_success
from tiergate.cli.formatters.tables import create_key_value_table, create_table, print_table
from tiergate.config import (
    create_default_config,
    get_config_dir,
    load_config,
    load_credentials_or_empty,
    resolve_api_key,
)
from tiergate.core.errors import ConfigError

app = typer.Typer(
    name="config",
    help="Manage tiergate configuration.",
    no_args_is_help=True,
)


@app.command()
def init(
    directory: Annotated[
        Path | None,
        typer.Option("--dir", help="Directory for the files (default: ~/.tiergate)."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing files."),
    ] = False,
) -> None:
    """Create default config.yaml and credentials.yaml."""
    try:
        config_path, credentials_path = create_default_config(directory, overwrite=force)
    except ConfigError as e:
        print_error(f"{e.message}\nUse --force to overwrite.", title="Configuration Error")
        raise typer.Exit(1) from e

    print_success(
        f"Created {config_path}\nCreated {credentials_path} (mode 600)\n"
        "Fill in API keys or export <PROVIDER>_API_KEY variables.",
        title="Configuration Initialized",
    )


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml."),
    ] = None,
) -> None:
    """Display the tier chain, gate settings and experiments."""
    path = config_path or get_config_dir() / "config.yaml"
    try:
        config = load_config(path)
        credentials = load_credentials_or_empty(path.parent / "credentials.yaml")
    except ConfigError as e:
        print_error(e.message, title="Configuration Error")
        raise typer.Exit(1) from e

    tiers = create_table("Tiers")
    for column in ("Name", "Provider", "Model", "Cost", "Timeout", "Credential"):
        tiers.add_column(column)
    for tier in sorted(config.router.tiers, key=lambda t: t.cost_factor):
        has_key = resolve_api_key(tier.provider, credentials) is not None
        if has_key:
            credential = "[success]set[/]"
        elif tier.skip_if_unconfigured:
            credential = "[warning]missing (skipped)[/]"
        else:
            credential = "[error]missing[/]"
        tiers.add_row(
            tier.name,
            tier.provider,
            tier.model,
            f"{tier.cost_factor:g}x",
            f"{tier.timeout_seconds:g}s",
            credential,
        )
    print_table(tiers)

    print_table(
        create_key_value_table(
            {
                "Config file": path,
                "Escalation": "enabled" if config.router.allow_escalation else "disabled",
                "Gate threshold": config.gate.threshold,
                "Penalty overrides": config.gate.penalties or "none",
                "Experiments": ", ".join(e.name for e in config.experiments) or "none",
                "Log level": config.logging.level,
            },
            "Settings",
        )
    )


__all__ = ["app"]
