"""Shared fixtures for tiergate unit tests."""

from collections.abc import Iterator

import pytest

from tiergate.observability.logging import reset_logging, set_console_logging

RUBRIC_LINES = [
    "Self-Serve Fulfillment",
    "Market Size",
    "Pricing Power",
    "Distribution",
    "Retention",
    "Automation Potential",
    "Capital Efficiency",
    "Defensibility",
    "Time to Revenue",
    "Founder Fit",
]


def make_unit_text(*, scores: list[int] | None = None, total: int = 72) -> str:
    """Evaluation text with numbered rubric lines, a total and a pivot section."""
    scores = scores if scores is not None else [8, 7, 6, 7, 8, 9, 7, 6, 7, 7]
    lines = ["Camera gear rental marketplace for weekend shooters."]
    lines += [f"{i}) {name}: {s}" for i, (name, s) in enumerate(zip(RUBRIC_LINES, scores), 1)]
    lines.append(f"Total: {total}/100")
    lines.append(
        "Pivot: bundle damage cover through an integration with insurers so "
        "every rental is protected automatically."
    )
    return "\n".join(lines)


def make_block(text: str, probability: str | float) -> str:
    return (
        "<response>\n"
        f"  <text>{text}</text>\n"
        f"  <probability>{probability}</probability>\n"
        "</response>"
    )


def make_output(probabilities: list[float] | None = None, text: str | None = None) -> str:
    """Raw provider output with one well-formed block per probability."""
    probabilities = probabilities if probabilities is not None else [0.08, 0.06, 0.07]
    body = text if text is not None else make_unit_text()
    return "\n".join(make_block(body, p) for p in probabilities)


@pytest.fixture
def well_formed_output() -> str:
    return make_output()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    reset_logging()
    set_console_logging(True)


@pytest.fixture(name="make_output")
def make_output_fixture():
    return make_output


@pytest.fixture(name="make_unit_text")
def make_unit_text_fixture():
    return make_unit_text


@pytest.fixture(name="make_block")
def make_block_fixture():
    return make_block
