"""Anthropic SDK adapter, the usual terminal tier.

System messages are passed as the top-level ``system`` parameter, as the
Messages API requires. The SDK is imported lazily so tiers that never
escalate this far do not pay for the import.
"""

import os
from typing import Any

from tiergate.core.errors import ProviderError
from tiergate.core.security import clamp_provider_output
from tiergate.core.types import Result
from tiergate.observability.logging import get_logger
from tiergate.providers.base import (
    CompletionConfig,
    CompletionResponse,
    Message,
    MessageRole,
    UsageInfo,
)

log = get_logger(__name__)

DEFAULT_MODEL = "claude-opus-4-20250514"


class AnthropicAdapter:
    """Provider adapter calling the Anthropic Messages API directly.

    The key comes from the constructor or ANTHROPIC_API_KEY.

    Example:
        adapter = AnthropicAdapter(api_key="sk-ant-...")
        result = await adapter.complete(messages, CompletionConfig(model=DEFAULT_MODEL))
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 2,
        default_model: str = DEFAULT_MODEL,
    ) -> None:
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._timeout = timeout
        self._max_retries = max_retries
        self._default_model = default_model
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            import anthropic

            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                timeout=self._timeout,
                max_retries=self._max_retries,
            )
        return self._client

    def _resolve_model(self, model: str) -> str:
        """Strip provider prefixes; non-Claude names fall back to the default model."""
        for prefix in ("openrouter/anthropic/", "anthropic/"):
            if model.startswith(prefix):
                model = model[len(prefix) :]
        if model.startswith("claude"):
            return model
        return self._default_model

    async def complete(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> Result[CompletionResponse, ProviderError]:
        """Request one completion from the Messages API."""
        if not self._api_key:
            return Result.err(
                ProviderError(
                    "ANTHROPIC_API_KEY not set",
                    provider="anthropic",
                    status_code=401,
                )
            )

        model = self._resolve_model(config.model)
        system_parts = [m.content for m in messages if m.role == MessageRole.SYSTEM]
        api_messages = [m.to_dict() for m in messages if m.role != MessageRole.SYSTEM]
        if not api_messages:
            api_messages.append({"role": "user", "content": "(empty)"})

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": api_messages,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)
        if config.stop:
            kwargs["stop_sequences"] = config.stop

        log.debug("anthropic.request.started", model=model, message_count=len(api_messages))

        try:
            response = await self._get_client().messages.create(**kwargs)
        except Exception as e:
            return self._handle_error(e, model)
        return Result.ok(self._parse_response(response, model))

    def _parse_response(self, response: Any, model: str) -> CompletionResponse:
        text = "\n".join(block.text for block in response.content if block.type == "text")
        content, truncated = clamp_provider_output(text)
        if truncated:
            log.warning("anthropic.response.truncated", model=model)

        usage = response.usage
        prompt_tokens = usage.input_tokens if usage else 0
        completion_tokens = usage.output_tokens if usage else 0
        return CompletionResponse(
            content=content,
            model=response.model or model,
            usage=UsageInfo(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=response.stop_reason or "end_turn",
        )

    def _handle_error(
        self,
        exc: Exception,
        model: str,
    ) -> Result[CompletionResponse, ProviderError]:
        """Map SDK exceptions onto ProviderError values."""
        import anthropic

        if isinstance(exc, anthropic.AuthenticationError):
            log.warning("anthropic.request.failed.auth", model=model)
            return Result.err(
                ProviderError(
                    "Authentication failed - check ANTHROPIC_API_KEY",
                    provider="anthropic",
                    status_code=401,
                )
            )
        if isinstance(exc, anthropic.RateLimitError):
            log.warning("anthropic.request.failed.rate_limit", model=model)
            return Result.err(
                ProviderError("Rate limit exceeded", provider="anthropic", status_code=429)
            )
        if isinstance(exc, anthropic.APIError):
            log.warning("anthropic.request.failed.api_error", model=model, error=str(exc))
            return Result.err(
                ProviderError(
                    f"API error: {exc}",
                    provider="anthropic",
                    status_code=getattr(exc, "status_code", None),
                )
            )

        log.exception("anthropic.request.failed.unexpected", model=model, error=str(exc))
        return Result.err(ProviderError.from_exception(exc, provider="anthropic"))
