"""Provider adapters for tiergate.

Every tier is reached through the LLMAdapter protocol. MiniMaxAdapter talks
to MiniMax over httpx, AnthropicAdapter uses the official SDK, and
LiteLLMAdapter covers OpenAI, OpenRouter and anything else litellm routes.
"""

from tiergate.providers.anthropic_adapter import AnthropicAdapter
from tiergate.providers.base import (
    CompletionConfig,
    CompletionResponse,
    LLMAdapter,
    Message,
    MessageRole,
    UsageInfo,
)
from tiergate.providers.factory import create_adapter
from tiergate.providers.litellm_adapter import LiteLLMAdapter
from tiergate.providers.minimax_adapter import MiniMaxAdapter
from tiergate.providers.prompts import (
    DEFAULT_SYSTEM_PROMPT,
    USER_PROMPT_TEMPLATE,
    build_messages,
)

__all__ = [
    # Protocol
    "LLMAdapter",
    # Models
    "Message",
    "MessageRole",
    "CompletionConfig",
    "CompletionResponse",
    "UsageInfo",
    # Implementations
    "AnthropicAdapter",
    "LiteLLMAdapter",
    "MiniMaxAdapter",
    "create_adapter",
    # Prompts
    "DEFAULT_SYSTEM_PROMPT",
    "USER_PROMPT_TEMPLATE",
    "build_messages",
]
