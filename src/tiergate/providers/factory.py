"""Provider adapter factory.

Creates the adapter instance for a configured provider name.
"""

from __future__ import annotations

from tiergate.providers.anthropic_adapter import AnthropicAdapter
from tiergate.providers.base import LLMAdapter
from tiergate.providers.litellm_adapter import LiteLLMAdapter
from tiergate.providers.minimax_adapter import MiniMaxAdapter


def create_adapter(
    provider: str,
    *,
    api_key: str | None = None,
    api_base: str | None = None,
    timeout: float = 120.0,
) -> LLMAdapter:
    """Create the adapter for a provider.

    Args:
        provider: Provider name ("anthropic", "minimax", or anything litellm routes).
        api_key: Key for the provider.
        api_base: Custom endpoint, honored by the MiniMax and litellm adapters.
        timeout: Request timeout in seconds.

    Returns:
        An LLMAdapter for the provider.
    """
    name = provider.lower()
    if name == "anthropic":
        return AnthropicAdapter(api_key=api_key, timeout=timeout)
    elif name == "minimax":
        return MiniMaxAdapter(api_key=api_key, api_base=api_base, timeout=timeout)
    else:
        return LiteLLMAdapter(api_key=api_key, api_base=api_base, timeout=timeout)
