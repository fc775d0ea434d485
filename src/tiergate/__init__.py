"""tiergate - Quality-gated escalation across LLM provider tiers.

Requests go to the cheapest configured provider first. A structural and
heuristic quality gate inspects the answer, and only a failing answer is
re-issued to the next more expensive tier. A/B experiments compare prompt
and provider variants with per-variant metrics and winner selection.

Example:
    # Using CLI
    tiergate gate score response.xml
    tiergate run evaluate "A marketplace for renting camera gear"

    # Using Python
    from tiergate.gate import quality_gate
    from tiergate.routing import EscalationRouter, build_tiers
"""

__version__ = "0.4.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the tiergate CLI.

    This function invokes the Typer app from tiergate.cli.main.
    """
    from tiergate.cli.main import app

    app()
