"""LiteLLM adapter for OpenAI, OpenRouter and other litellm-routable tiers.

Transient failures (rate limits, unavailable service, timeouts, dropped
connections) are retried with stamina; whatever still fails is returned as
Result.err(ProviderError) so the router can escalate.
"""

import os
from typing import Any

import litellm
import stamina

from tiergate.core.errors import ProviderError
from tiergate.core.security import clamp_provider_output
from tiergate.core.types import Result
from tiergate.observability.logging import get_logger
from tiergate.providers.base import (
    CompletionConfig,
    CompletionResponse,
    Message,
    UsageInfo,
)

log = get_logger(__name__)

RETRIABLE_EXCEPTIONS = (
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.Timeout,
    litellm.APIConnectionError,
)

# Model prefix -> environment variable holding its key
_ENV_KEYS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("openrouter/",), "OPENROUTER_API_KEY"),
    (("anthropic/", "claude"), "ANTHROPIC_API_KEY"),
    (("openai/", "gpt", "o1", "o3", "o4"), "OPENAI_API_KEY"),
    (("minimax/",), "MINIMAX_API_KEY"),
)


class LiteLLMAdapter:
    """Provider adapter built on ``litellm.acompletion``.

    API keys come from the constructor or, failing that, from the
    environment variable matching the model prefix (OPENAI_API_KEY,
    ANTHROPIC_API_KEY, OPENROUTER_API_KEY, MINIMAX_API_KEY).

    Example:
        adapter = LiteLLMAdapter(api_key="sk-...")
        result = await adapter.complete(
            messages=build_messages("A CLI that grades lesson plans"),
            config=CompletionConfig(model="gpt-4o"),
        )
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 3,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Key overriding environment lookup.
            api_base: Custom endpoint base URL.
            timeout: Per-request timeout in seconds.
            max_retries: Attempts for transient errors.
        """
        self._api_key = api_key
        self._api_base = api_base
        self._timeout = timeout
        self._max_retries = max_retries

    def _get_api_key(self, model: str) -> str | None:
        if self._api_key:
            return self._api_key
        for prefixes, env_var in _ENV_KEYS:
            if model.startswith(prefixes):
                return os.environ.get(env_var)
        return os.environ.get("OPENROUTER_API_KEY")

    def _build_completion_kwargs(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
            "timeout": self._timeout,
        }
        if config.stop:
            kwargs["stop"] = config.stop

        api_key = self._get_api_key(config.model)
        if api_key:
            kwargs["api_key"] = api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def _raw_complete(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> litellm.ModelResponse:
        kwargs = self._build_completion_kwargs(messages, config)
        log.debug(
            "llm.request.started",
            model=config.model,
            message_count=len(messages),
            max_tokens=config.max_tokens,
        )
        response = await litellm.acompletion(**kwargs)
        log.debug(
            "llm.request.completed",
            model=config.model,
            finish_reason=response.choices[0].finish_reason,
        )
        return response

    def _parse_response(
        self,
        response: litellm.ModelResponse,
        config: CompletionConfig,
    ) -> CompletionResponse:
        choice = response.choices[0]
        usage = response.usage
        content, truncated = clamp_provider_output(choice.message.content or "")
        if truncated:
            log.warning("llm.response.truncated", model=config.model)

        # Reasoning models expose a summary on the message; anything else is ignored.
        reasoning = getattr(choice.message, "reasoning_content", None)

        return CompletionResponse(
            content=content,
            model=response.model or config.model,
            usage=UsageInfo(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            finish_reason=choice.finish_reason or "stop",
            reasoning=reasoning if isinstance(reasoning, str) else None,
            raw_response=response.model_dump() if hasattr(response, "model_dump") else {},
        )

    async def complete(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> Result[CompletionResponse, ProviderError]:
        """Request one completion, retrying transient failures."""
        provider = self._extract_provider(config.model)

        @stamina.retry(
            on=RETRIABLE_EXCEPTIONS,
            attempts=self._max_retries,
            wait_initial=1.0,
            wait_max=10.0,
            wait_jitter=1.0,
        )
        async def _with_retry() -> litellm.ModelResponse:
            return await self._raw_complete(messages, config)

        try:
            response = await _with_retry()
            return Result.ok(self._parse_response(response, config))
        except RETRIABLE_EXCEPTIONS as e:
            log.warning(
                "llm.request.failed.retries_exhausted",
                model=config.model,
                error=str(e),
                max_retries=self._max_retries,
            )
            return Result.err(ProviderError.from_exception(e, provider=provider))
        except litellm.AuthenticationError as e:
            log.warning("llm.request.failed.auth_error", model=config.model)
            return Result.err(
                ProviderError(
                    "Authentication failed - check API key",
                    provider=provider,
                    status_code=401,
                    details={"original_exception": type(e).__name__},
                )
            )
        except (litellm.BadRequestError, litellm.APIError) as e:
            log.warning(
                "llm.request.failed.api_error",
                model=config.model,
                error=str(e),
                status_code=getattr(e, "status_code", None),
            )
            return Result.err(ProviderError.from_exception(e, provider=provider))
        except Exception as e:
            log.exception("llm.request.failed.unexpected", model=config.model, error=str(e))
            return Result.err(
                ProviderError(
                    f"Unexpected error: {e!s}",
                    provider=provider,
                    details={"original_exception": type(e).__name__},
                )
            )

    def _extract_provider(self, model: str) -> str:
        """Provider name from a model string ('openrouter/openai/gpt-4' -> 'openrouter')."""
        if "/" in model:
            return model.split("/")[0]
        if model.startswith(("gpt", "o1", "o3", "o4")):
            return "openai"
        if model.startswith("claude"):
            return "anthropic"
        return "unknown"
