"""Unit tests for the tiergate CLI."""

import json
from pathlib import Path
import re
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from tiergate import __version__
from tiergate.cli.main import app
from tiergate.core.types import Result
from tiergate.providers.base import CompletionResponse, UsageInfo
from tiergate.routing import ProviderTier

runner = CliRunner()

BAD_OUTPUT = "Sorry, no evaluation today."


def _clean(output: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", output)


def _adapter(content: str) -> AsyncMock:
    adapter = AsyncMock()
    adapter.complete.return_value = Result.ok(
        CompletionResponse(content=content, model="fake", usage=UsageInfo(10, 90, 100))
    )
    return adapter


def _fake_tiers(cheap: str, expensive: str) -> list[ProviderTier]:
    return [
        ProviderTier(name="minimax", model="MiniMax-Text-01", adapter=_adapter(cheap), cost_factor=1),
        ProviderTier(name="openai", model="gpt-4o", adapter=_adapter(cheap), cost_factor=10),
        ProviderTier(
            name="anthropic", model="claude-opus-4-20250514", adapter=_adapter(expensive),
            cost_factor=60,
        ),
    ]


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    result = runner.invoke(app, ["config", "init", "--dir", str(tmp_path)])
    assert result.exit_code == 0
    return tmp_path


class TestMainApp:
    """Tests for the main Typer application."""

    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "Quality-gated escalation" in _clean(result.output)

    @pytest.mark.parametrize("flag", ["--version", "-V"])
    def test_version(self, flag: str) -> None:
        result = runner.invoke(app, [flag])

        assert result.exit_code == 0
        assert __version__ in _clean(result.output)

    @pytest.mark.parametrize("group", ["gate", "run", "experiment", "config"])
    def test_command_groups_registered(self, group: str) -> None:
        assert runner.invoke(app, [group, "--help"]).exit_code == 0


class TestGateScore:
    """Tests for `tiergate gate score`."""

    def test_passing_file(self, tmp_path: Path, well_formed_output: str) -> None:
        source = tmp_path / "response.xml"
        source.write_text(well_formed_output)

        result = runner.invoke(app, ["gate", "score", str(source)])

        assert result.exit_code == 0
        assert "PASS" in _clean(result.output)

    def test_failing_input_exits_one(self, tmp_path: Path) -> None:
        source = tmp_path / "response.xml"
        source.write_text(BAD_OUTPUT)

        result = runner.invoke(app, ["gate", "score", str(source)])

        assert result.exit_code == 1
        assert "FAIL" in _clean(result.output)
        assert re.search(r"Critical issues\W+1\b", _clean(result.output))

    def test_json_from_stdin(self, well_formed_output: str) -> None:
        result = runner.invoke(app, ["gate", "score", "-", "--json"], input=well_formed_output)

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["passesGate"] is True
        assert len(report["responses"]) == 3

    def test_threshold_option(self, tmp_path: Path, make_output) -> None:
        source = tmp_path / "response.xml"
        source.write_text(make_output([0.08, 0.06]))

        assert runner.invoke(app, ["gate", "score", str(source)]).exit_code == 0
        assert runner.invoke(app, ["gate", "score", str(source), "-t", "0.99"]).exit_code == 1

    def test_missing_file_exits_two(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["gate", "score", str(tmp_path / "nope.xml")])

        assert result.exit_code == 2
        assert "File not found" in _clean(result.output)


class TestConfigCommands:
    """Tests for `tiergate config`."""

    def test_init_creates_files(self, config_dir: Path) -> None:
        assert (config_dir / "config.yaml").exists()
        assert (config_dir / "credentials.yaml").exists()

    def test_init_refuses_overwrite(self, config_dir: Path) -> None:
        result = runner.invoke(app, ["config", "init", "--dir", str(config_dir)])

        assert result.exit_code == 1
        assert "--force" in _clean(result.output)

    def test_init_force(self, config_dir: Path) -> None:
        result = runner.invoke(app, ["config", "init", "--dir", str(config_dir), "--force"])

        assert result.exit_code == 0

    def test_show(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("MINIMAX_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
            monkeypatch.delenv(var, raising=False)

        result = runner.invoke(app, ["config", "show", "--config", str(config_dir / "config.yaml")])

        output = _clean(result.output)
        assert result.exit_code == 0
        assert "minimax" in output
        assert "skipped" in output
        assert "minimax-vs-openai" in output

    def test_show_missing_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "show", "--config", str(tmp_path / "none.yaml")])

        assert result.exit_code == 1


class TestRunEvaluate:
    """Tests for `tiergate run evaluate`."""

    def test_escalates_and_prints_json(self, config_dir: Path, well_formed_output: str) -> None:
        tiers = _fake_tiers(BAD_OUTPUT, well_formed_output)

        with patch("tiergate.cli.commands.run.build_tiers", return_value=tiers):
            result = runner.invoke(
                app,
                ["run", "evaluate", "A tool library", "-c", str(config_dir / "config.yaml"), "--json"],
            )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["provider"] == "anthropic"
        assert data["escalated"] is True
        assert data["escalationReason"].startswith("minimax scored")

    def test_no_escalation_flag(self, config_dir: Path, well_formed_output: str) -> None:
        tiers = _fake_tiers(BAD_OUTPUT, well_formed_output)

        with patch("tiergate.cli.commands.run.build_tiers", return_value=tiers):
            result = runner.invoke(
                app,
                [
                    "run", "evaluate", "A tool library",
                    "-c", str(config_dir / "config.yaml"),
                    "--no-escalation", "--json",
                ],
            )

        assert json.loads(result.stdout)["provider"] == "minimax"

    def test_table_output(self, config_dir: Path, well_formed_output: str) -> None:
        tiers = _fake_tiers(well_formed_output, well_formed_output)

        with patch("tiergate.cli.commands.run.build_tiers", return_value=tiers):
            result = runner.invoke(
                app, ["run", "evaluate", "A tool library", "-c", str(config_dir / "config.yaml")]
            )

        output = _clean(result.output)
        assert result.exit_code == 0
        assert "Evaluation" in output
        assert "Response 1" in output

    def test_missing_credentials_exit_one(
        self, config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for var in ("MINIMAX_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
            monkeypatch.delenv(var, raising=False)

        result = runner.invoke(
            app, ["run", "evaluate", "A tool library", "-c", str(config_dir / "config.yaml")]
        )

        assert result.exit_code == 1
        assert "Configuration Error" in _clean(result.output)

    def test_empty_request_exit_two(self, config_dir: Path) -> None:
        result = runner.invoke(
            app, ["run", "evaluate", "   ", "-c", str(config_dir / "config.yaml")]
        )

        assert result.exit_code == 2

    def test_missing_config_exit_two(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["run", "evaluate", "idea", "-c", str(tmp_path / "none.yaml")])

        assert result.exit_code == 2


class TestExperimentRun:
    """Tests for `tiergate experiment run`."""

    def test_benchmark_writes_report(
        self, config_dir: Path, tmp_path: Path, well_formed_output: str
    ) -> None:
        requests = tmp_path / "ideas.txt"
        requests.write_text("# ideas\nA tool library\n\nA seed exchange\n")
        report_path = tmp_path / "report.json"
        tiers = _fake_tiers(well_formed_output, well_formed_output)

        with patch("tiergate.cli.commands.experiment.build_tiers", return_value=tiers):
            result = runner.invoke(
                app,
                [
                    "experiment", "run", "minimax-vs-openai",
                    "--requests", str(requests),
                    "-c", str(config_dir / "config.yaml"),
                    "--rounds", "3",
                    "--seed", "7",
                    "-o", str(report_path),
                ],
            )

        assert result.exit_code == 0, result.output
        report = json.loads(report_path.read_text())
        assert report["stats"]["totalSamples"] == 6
        assert report["failures"] == 0
        assert report["optimizeFor"] == "quality"
        assert set(report["stats"]["variants"]) == {"minimax-default", "openai-default"}
        assert report["usage"]["caller"] == "open"
        assert report["usage"]["requests"] == 6

    def test_unknown_experiment(self, config_dir: Path, tmp_path: Path) -> None:
        requests = tmp_path / "ideas.txt"
        requests.write_text("A tool library\n")

        result = runner.invoke(
            app,
            ["experiment", "run", "nope", "-r", str(requests), "-c", str(config_dir / "config.yaml")],
        )

        assert result.exit_code == 2
        assert "not configured" in _clean(result.output)

    def test_yaml_requests_must_be_list(self, config_dir: Path, tmp_path: Path) -> None:
        requests = tmp_path / "ideas.yaml"
        requests.write_text("idea: not a list\n")

        result = runner.invoke(
            app,
            [
                "experiment", "run", "minimax-vs-openai",
                "-r", str(requests), "-c", str(config_dir / "config.yaml"),
            ],
        )

        assert result.exit_code == 2
