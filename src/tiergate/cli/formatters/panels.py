"""Rich panels for important messages.

Provides panel templates for displaying info, warning, error,
and success messages with consistent styling.
"""

from rich.panel import Panel

from tiergate.cli.formatters import console

_STYLES = {
    "info": "blue",
    "warning": "yellow",
    "error": "red",
    "success": "green",
}


def _panel(kind: str, message: str, title: str, expand: bool) -> Panel:
    color = _STYLES[kind]
    return Panel(
        f"[{kind}]{message}[/]",
        title=f"[bold {color}]{title}[/]",
        border_style=color,
        expand=expand,
    )


def info_panel(message: str, title: str = "Info", *, expand: bool = False) -> Panel:
    """Create an info panel with blue styling."""
    return _panel("info", message, title, expand)


def warning_panel(message: str, title: str = "Warning", *, expand: bool = False) -> Panel:
    """Create a warning panel with yellow styling."""
    return _panel("warning", message, title, expand)


def error_panel(message: str, title: str = "Error", *, expand: bool = False) -> Panel:
    """Create an error panel with red styling."""
    return _panel("error", message, title, expand)


def success_panel(message: str, title: str = "Success", *, expand: bool = False) -> Panel:
    """Create a success panel with green styling."""
    return _panel("success", message, title, expand)


def print_info(message: str, title: str = "Info") -> None:
    console.print(info_panel(message, title))


def print_warning(message: str, title: str = "Warning") -> None:
    console.print(warning_panel(message, title))


def print_error(message: str, title: str = "Error") -> None:
    console.print(error_panel(message, title))


def print_success(message: str, title: str = "Success") -> None:
    console.print(success_panel(message, title))


__all__ = [
    "info_panel",
    "warning_panel",
    "error_panel",
    "success_panel",
    "print_info",
    "print_warning",
    "print_error",
    "print_success",
]
