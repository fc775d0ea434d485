"""Experiment command group for tiergate.

Benchmark a configured A/B experiment over a list of requests and report
per-variant statistics and the winner.
"""

import asyncio
import json
from pathlib import Path
import random
from typing import Annotated, Any

import typer
import yaml

from tiergate.cli.commands.run import ConfigOption, load_runtime
from tiergate.cli.formatters import console
from tiergate.cli.formatters.panels import print_error, print_info, print_success, print_warning
from tiergate.cli.formatters.tables import create_variant_stats_table, print_table
from tiergate.experiments import (
    Experiment,
    ExperimentEngine,
    MetricsStore,
    WinnerSelection,
    experiment_from_config,
    pick_winner,
)
from tiergate.routing import ANONYMOUS_CALLER, UsageStore, build_tiers

app = typer.Typer(
    name="experiment",
    help="Run A/B experiments across provider tiers and prompts.",
    no_args_is_help=True,
)


def load_requests(path: Path) -> list[str]:
    """Read requests from a YAML list or a text file with one request per line."""
    if not path.is_file():
        print_error(f"Requests file not found: {path}")
        raise typer.Exit(2)

    text = path.read_text(encoding="utf-8")
    if path.suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or []
        if not isinstance(data, list):
            print_error("Requests YAML must be a list of strings")
            raise typer.Exit(2)
        requests = [str(item).strip() for item in data]
    else:
        requests = [line.strip() for line in text.splitlines()]
    return [r for r in requests if r and not r.startswith("#")]


async def _run_benchmark(
    engine: ExperimentEngine,
    experiment: Experiment,
    requests: list[str],
    *,
    rounds: int,
    concurrency: int,
    rng: random.Random,
) -> int:
    """Evaluate every request `rounds` times; returns the number of failures."""
    semaphore = asyncio.Semaphore(concurrency)
    failures = 0

    async def _one(request: str) -> None:
        nonlocal failures
        async with semaphore:
            result = await engine.evaluate_with_experiment(request, experiment, rng=rng)
        if result.is_err:
            failures += 1
            console.print(f"[error]x[/] {request[:60]}: {result.error.message}")
            return
        value = result.value
        mark = "[warning]^[/]" if value.evaluation.escalated else "[success]+[/]"
        console.print(
            f"{mark} [{value.variant_id}] quality={value.evaluation.quality:.3f} "
            f"{request[:60]}"
        )

    await asyncio.gather(*(_one(r) for _ in range(rounds) for r in requests))
    return failures


def _print_winner(selection: WinnerSelection) -> None:
    if selection.winner is None:
        print_warning("Not enough samples to pick a winner", title="Winner")
        return
    print_success(
        f"{selection.winner.id} (confidence: {selection.confidence.value})",
        title="Winner",
    )


@app.command("run")
def run_experiment(
    name: Annotated[str, typer.Argument(help="Experiment name from config.yaml.")],
    requests_file: Annotated[
        Path,
        typer.Option("--requests", "-r", help="Requests file (.txt lines or .yaml list)."),
    ],
    config_path: ConfigOption = None,
    rounds: Annotated[
        int, typer.Option("--rounds", min=1, help="Times each request is evaluated.")
    ] = 1,
    concurrency: Annotated[
        int, typer.Option("--concurrency", min=1, help="Evaluations in flight at once.")
    ] = 1,
    seed: Annotated[
        int | None, typer.Option("--seed", help="Seed for variant selection.")
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write a JSON report here.")
    ] = None,
) -> None:
    """Benchmark an experiment and report per-variant stats and the winner.

    Examples:

        tiergate experiment run minimax-vs-openai --requests ideas.txt --rounds 3
    """
    config, credentials = load_runtime(config_path)
    experiment_config = config.get_experiment(name)
    if experiment_config is None:
        print_error(f"Experiment '{name}' is not configured")
        raise typer.Exit(2)

    defined = experiment_from_config(experiment_config)
    if defined.is_err:
        print_error(defined.error.message, title="Invalid Experiment")
        raise typer.Exit(2)
    experiment = defined.value

    requests = load_requests(requests_file)
    if not requests:
        print_error("No requests to evaluate")
        raise typer.Exit(2)

    store = MetricsStore()
    usage_store = UsageStore()
    engine = ExperimentEngine(
        build_tiers(config, credentials),
        fallback=experiment_config.fallback,
        store=store,
        policy=config.gate.build_policy(),
        allow_escalation=config.router.allow_escalation,
        usage_store=usage_store,
    )

    print_info(
        f"{len(requests)} requests x {rounds} rounds over "
        f"{len(experiment.variants)} variants",
        title=f"Experiment: {name}",
    )
    failures = asyncio.run(
        _run_benchmark(
            engine,
            experiment,
            requests,
            rounds=rounds,
            concurrency=concurrency,
            rng=random.Random(seed),
        )
    )

    selection = pick_winner(
        experiment,
        store,
        min_samples=experiment_config.min_samples,
        optimize_for=experiment_config.optimize_for,
    )
    print_table(create_variant_stats_table(selection.stats))
    _print_winner(selection)
    usage = usage_store.usage(ANONYMOUS_CALLER)
    console.print(
        f"[muted]{usage.requests} evaluations, {usage.total_tokens} tokens, "
        f"escalation rate {usage.escalation_rate:.1%}[/]"
    )
    if failures:
        print_warning(f"{failures} evaluations failed and were not recorded")

    if output is not None:
        report: dict[str, Any] = {
            **selection.to_dict(),
            "optimizeFor": experiment_config.optimize_for,
            "failures": failures,
            "usage": usage.to_dict(),
        }
        output.write_text(json.dumps(report, indent=2), encoding="utf-8")
        console.print(f"[muted]Report written to {output}[/]")


__all__ = ["app", "load_requests"]
