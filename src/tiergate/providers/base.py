"""Base protocol and models for provider adapters.

Every provider tier is reached through an LLMAdapter. Adapters normalize
their provider's reply into a CompletionResponse (text, model id, token
usage) and report expected failures as Result.err(ProviderError) rather
than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from tiergate.core.errors import ProviderError
from tiergate.core.types import Result


class MessageRole(StrEnum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """A single chat message."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True, slots=True)
class CompletionConfig:
    """Per-request completion settings.

    Attributes:
        model: Model identifier understood by the adapter.
        temperature: Sampling temperature.
        max_tokens: Maximum tokens to generate.
        stop: Optional stop sequences.
        top_p: Nucleus sampling parameter.
    """

    model: str
    temperature: float = 0.7
    max_tokens: int = 8192
    stop: list[str] | None = None
    top_p: float = 1.0


@dataclass(frozen=True, slots=True)
class UsageInfo:
    """Token usage of one or more completions.

    Attributes:
        prompt_tokens: Input tokens.
        completion_tokens: Output tokens.
        total_tokens: Sum of both.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: UsageInfo) -> UsageInfo:
        return UsageInfo(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.prompt_tokens,
            "output_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True, slots=True)
class CompletionResponse:
    """Normalized reply from one provider call.

    Attributes:
        content: Generated text.
        model: Model that produced it.
        usage: Token usage.
        finish_reason: Why generation stopped.
        reasoning: Reasoning summary, when the provider returns one.
        raw_response: Provider payload kept for debugging.
    """

    content: str
    model: str
    usage: UsageInfo
    finish_reason: str = "stop"
    reasoning: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


class LLMAdapter(Protocol):
    """Protocol implemented by every provider adapter.

    Example:
        adapter: LLMAdapter = MiniMaxAdapter(api_key="...")
        result = await adapter.complete(
            messages=[Message(role=MessageRole.USER, content="Evaluate: ...")],
            config=CompletionConfig(model="MiniMax-Text-01"),
        )
    """

    async def complete(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> Result[CompletionResponse, ProviderError]:
        """Request one completion.

        Retries of the adapter's own are allowed; anything that still fails
        comes back as Result.err(ProviderError).
        """
        ...
