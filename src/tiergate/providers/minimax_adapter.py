"""MiniMax adapter, the cheapest tier in the default escalation chain.

MiniMax is inexpensive but inconsistent, which is what the quality gate is
for: good answers are returned at a fraction of the cost and bad ones are
escalated. Calls go straight to the chat-completion HTTP endpoint via httpx.
"""

import os
from typing import Any

import httpx
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

MINIMAX_API_URL = "https://api.minimax.io/v1/text/chatcompletion_v2"
DEFAULT_MODEL = "MiniMax-Text-01"

_RETRIABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class _RetriableStatusError(Exception):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"MiniMax API error ({status_code}): {body}")
        self.status_code = status_code


class MiniMaxAdapter:
    """Provider adapter for the MiniMax chat-completion API.

    Example:
        adapter = MiniMaxAdapter(api_key=os.environ["MINIMAX_API_KEY"])
        result = await adapter.complete(messages, CompletionConfig(model=DEFAULT_MODEL))
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Key overriding MINIMAX_API_KEY.
            api_base: Endpoint URL overriding MINIMAX_API_URL.
            timeout: Request timeout in seconds.
            max_retries: Attempts for 429/5xx responses and transport errors.
            transport: Custom httpx transport (tests use httpx.MockTransport).
        """
        self._api_key = api_key or os.environ.get("MINIMAX_API_KEY")
        self._url = api_base or MINIMAX_API_URL
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

    def _build_payload(self, messages: list[Message], config: CompletionConfig) -> dict[str, Any]:
        model = config.model.removeprefix("minimax/") or DEFAULT_MODEL
        return {
            "model": model,
            "messages": [m.to_dict() for m in messages],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
        }

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                self._url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        if response.status_code in _RETRIABLE_STATUS:
            raise _RetriableStatusError(response.status_code, response.text)
        if response.is_error:
            raise ProviderError(
                f"MiniMax API error ({response.status_code}): {response.text}",
                provider="minimax",
                status_code=response.status_code,
            )
        data: dict[str, Any] = response.json()
        return data

    def _parse_response(self, data: dict[str, Any], model: str) -> CompletionResponse:
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        content, truncated = clamp_provider_output(message.get("content") or "")
        if truncated:
            log.warning("minimax.response.truncated", model=model)

        usage = data.get("usage") or {}
        return CompletionResponse(
            content=content,
            model=data.get("model") or model,
            usage=UsageInfo(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
            finish_reason=choices[0].get("finish_reason") or "stop",
            raw_response=data,
        )

    async def complete(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> Result[CompletionResponse, ProviderError]:
        """Request one completion from MiniMax."""
        if not self._api_key:
            return Result.err(
                ProviderError("MINIMAX_API_KEY not set", provider="minimax", status_code=401)
            )

        payload = self._build_payload(messages, config)

        @stamina.retry(
            on=(httpx.TransportError, _RetriableStatusError),
            attempts=self._max_retries,
            wait_initial=1.0,
            wait_max=10.0,
        )
        async def _with_retry() -> dict[str, Any]:
            return await self._post(payload)

        log.debug("minimax.request.started", model=payload["model"])
        try:
            data = await _with_retry()
        except ProviderError as e:
            log.warning("minimax.request.failed.api_error", status_code=e.status_code)
            return Result.err(e)
        except (httpx.HTTPError, _RetriableStatusError, ValueError) as e:
            log.warning("minimax.request.failed", error=str(e))
            return Result.err(ProviderError.from_exception(e, provider="minimax"))

        base_resp = data.get("base_resp") or {}
        if base_resp.get("status_code", 0) != 0:
            return Result.err(
                ProviderError(
                    f"MiniMax error: {base_resp.get('status_msg', 'unknown')}",
                    provider="minimax",
                    details={"base_resp": base_resp},
                )
            )
        return Result.ok(self._parse_response(data, payload["model"]))
