"""Rich formatters for CLI output.

This module provides a shared Console instance for consistent terminal
output across the tiergate CLI.

Semantic Colors:
- green: success / gate passed
- yellow: warning / escalated
- red: error / gate failed
- blue: info
"""

from rich.console import Console
from rich.theme import Theme

TIERGATE_THEME = Theme(
    {
        "success": "green",
        "warning": "yellow",
        "error": "red",
        "info": "blue",
        "muted": "dim",
        "highlight": "bold cyan",
    }
)

# Shared Console instance for all CLI modules
console = Console(theme=TIERGATE_THEME)

__all__ = ["console", "TIERGATE_THEME"]
