"""Response grammar parser.

Providers are prompted to answer with zero or more blocks of the form::

    <response>
      <text>...</text>
      <probability>0.0-1.0</probability>
    </response>

The parser extracts those blocks in document order. It never raises: absent
or malformed markers simply produce fewer (or zero) units, and the quality
gate turns that into issues.
"""

import math
import re

from tiergate.gate.models import ResponseUnit

# Body of a <text>/<probability> element. It may mention the inner tags but
# never crosses a <response> boundary, so one unit cannot absorb the next.
_BODY = r"((?:(?!</?response>).)*?)"

RESPONSE_BLOCK = re.compile(
    rf"<response>\s*<text>{_BODY}</text>\s*<probability>{_BODY}</probability>\s*</response>",
    re.DOTALL,
)
OPEN_TAG = re.compile(r"<response>")
CLOSE_TAG = re.compile(r"</response>")
_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_output(raw: str | bytes | None) -> str:
    """Coerce raw provider output to text.

    Bytes are decoded as UTF-8 with replacement characters and NUL bytes are
    dropped, so binary payloads score as garbage instead of failing.
    """
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return raw.replace("\x00", "")


def parse_probability(value: str) -> float:
    """Parse the numeric prefix of a probability element.

    ``"0.08"`` and ``"0.08 (approx)"`` both yield 0.08. Content without a
    numeric prefix yields ``nan``, which the scorer treats as out of range.
    """
    match = _LEADING_FLOAT.match(value.strip())
    if match is None:
        return math.nan
    try:
        return float(match.group(0))
    except (ValueError, OverflowError):
        return math.nan


def parse_responses(raw: str | bytes | None) -> list[ResponseUnit]:
    """Extract response units from raw provider output.

    Args:
        raw: Provider output text (bytes and None are tolerated).

    Returns:
        Units in document order; empty when no well-formed block exists.
    """
    text = normalize_output(raw)
    return [
        ResponseUnit(text=m.group(1).strip(), probability=parse_probability(m.group(2)))
        for m in RESPONSE_BLOCK.finditer(text)
    ]


def count_tags(raw: str | bytes | None) -> tuple[int, int]:
    """Count opening and closing <response> markers.

    Returns:
        Tuple of (opened, closed).
    """
    text = normalize_output(raw)
    return len(OPEN_TAG.findall(text)), len(CLOSE_TAG.findall(text))
