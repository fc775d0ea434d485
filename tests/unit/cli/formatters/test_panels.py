"""Unit tests for Rich panel formatters."""

from io import StringIO
from unittest.mock import patch

from rich.console import Console
from rich.panel import Panel

from tiergate.cli.formatters import TIERGATE_THEME
from tiergate.cli.formatters.panels import (
    error_panel,
    info_panel,
    print_error,
    print_warning,
    success_panel,
    warning_panel,
)


def _render(renderable: object) -> str:
    buffer = StringIO()
    Console(file=buffer, theme=TIERGATE_THEME, width=100, color_system=None).print(renderable)
    return buffer.getvalue()


class TestPanels:
    """Tests for panel factories."""

    def test_border_colors(self) -> None:
        assert info_panel("m").border_style == "blue"
        assert warning_panel("m").border_style == "yellow"
        assert error_panel("m").border_style == "red"
        assert success_panel("m").border_style == "green"

    def test_default_titles(self) -> None:
        assert "Info" in str(info_panel("m").title)
        assert "Error" in str(error_panel("m").title)

    def test_custom_title_and_message(self) -> None:
        panel = warning_panel("minimax scored 0.42 < 0.7", title="Escalated")

        assert isinstance(panel, Panel)
        output = _render(panel)
        assert "Escalated" in output
        assert "minimax scored 0.42 < 0.7" in output

    def test_not_expanded_by_default(self) -> None:
        assert success_panel("m").expand is False


class TestPrintFunctions:
    """Tests for print_* helpers."""

    def test_print_error_uses_shared_console(self) -> None:
        with patch("tiergate.cli.formatters.panels.console") as mock_console:
            print_error("File not found: x.xml")

        panel = mock_console.print.call_args.args[0]
        assert panel.border_style == "red"

    def test_print_warning_title(self) -> None:
        with patch("tiergate.cli.formatters.panels.console") as mock_console:
            print_warning("2 evaluations failed", title="Benchmark")

        assert "Benchmark" in str(mock_console.print.call_args.args[0].title)
