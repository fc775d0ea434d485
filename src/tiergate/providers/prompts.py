"""Default prompts sent to every provider tier.

The system prompt asks for the response grammar the quality gate parses.
Callers override it per tier (configuration) or per experiment variant.
"""

from tiergate.providers.base import Message, MessageRole

DEFAULT_SYSTEM_PROMPT = """You are an idea evaluator. Given a business idea, produce exactly 5 evaluation variants.

Each variant must:
1. Score the original idea on 10 dimensions (1-10 each), one numbered line per dimension, e.g. "1) Self-Serve Fulfillment: 8"
2. Calculate Total: X/100
3. If Total < 60, suggest a digital pivot with its own 10-dimension scoring
4. Include an integration sketch for the pivot

Output format (XML, exactly 5 response blocks):
<response>
  <text>[evaluation text]</text>
  <probability>[0.01-0.10]</probability>
</response>

Probabilities across all 5 responses must sum to < 1.0."""

USER_PROMPT_TEMPLATE = "Evaluate this idea:\n\n{request}"


def build_messages(request: str, system_prompt: str | None = None) -> list[Message]:
    """Build the system + user message pair for one request."""
    return [
        Message(role=MessageRole.SYSTEM, content=system_prompt or DEFAULT_SYSTEM_PROMPT),
        Message(role=MessageRole.USER, content=USER_PROMPT_TEMPLATE.format(request=request)),
    ]
