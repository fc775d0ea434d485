"""Unit tests for tiergate.providers.litellm_adapter module."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import litellm
import pytest

from tiergate.core.errors import ProviderError
from tiergate.core.security import MAX_LLM_RESPONSE_LENGTH
from tiergate.providers.base import (
    CompletionConfig,
    Message,
    MessageRole,
)
from tiergate.providers.litellm_adapter import LiteLLMAdapter


def create_mock_response(
    content: str | None = "<response><text>ok</text></response>",
    model: str = "gpt-4o",
    prompt_tokens: int = 10,
    completion_tokens: int = 20,
    finish_reason: str = "stop",
) -> MagicMock:
    """Create a mock LiteLLM response."""
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    mock_response.choices[0].message.reasoning_content = None
    mock_response.choices[0].finish_reason = finish_reason
    mock_response.model = model
    mock_response.usage = MagicMock()
    mock_response.usage.prompt_tokens = prompt_tokens
    mock_response.usage.completion_tokens = completion_tokens
    mock_response.usage.total_tokens = prompt_tokens + completion_tokens
    mock_response.model_dump = MagicMock(return_value={"id": "test"})
    return mock_response


def _messages() -> list[Message]:
    return [
        Message(role=MessageRole.SYSTEM, content="Evaluate ideas."),
        Message(role=MessageRole.USER, content="A tool library for renters"),
    ]


class TestLiteLLMAdapterInit:
    """Test LiteLLMAdapter initialization."""

    def test_init_defaults(self) -> None:
        adapter = LiteLLMAdapter()

        assert adapter._api_key is None
        assert adapter._api_base is None
        assert adapter._timeout == 120.0
        assert adapter._max_retries == 3

    def test_init_custom_values(self) -> None:
        adapter = LiteLLMAdapter(
            api_key="test-key",
            api_base="https://api.example.com",
            timeout=30.0,
            max_retries=5,
        )

        assert adapter._api_key == "test-key"
        assert adapter._api_base == "https://api.example.com"
        assert adapter._timeout == 30.0
        assert adapter._max_retries == 5


class TestLiteLLMAdapterGetApiKey:
    """Test API key resolution."""

    def test_explicit_key_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        adapter = LiteLLMAdapter(api_key="explicit")

        assert adapter._get_api_key("gpt-4o") == "explicit"

    @pytest.mark.parametrize(
        ("model", "env_var"),
        [
            ("openrouter/openai/gpt-4o", "OPENROUTER_API_KEY"),
            ("anthropic/claude-3-5-sonnet", "ANTHROPIC_API_KEY"),
            ("claude-3-5-sonnet", "ANTHROPIC_API_KEY"),
            ("gpt-4o", "OPENAI_API_KEY"),
            ("openai/gpt-4o", "OPENAI_API_KEY"),
            ("o3-mini", "OPENAI_API_KEY"),
            ("minimax/MiniMax-Text-01", "MINIMAX_API_KEY"),
        ],
    )
    def test_env_var_by_model_prefix(
        self, monkeypatch: pytest.MonkeyPatch, model: str, env_var: str
    ) -> None:
        monkeypatch.setenv(env_var, f"{env_var.lower()}-value")
        adapter = LiteLLMAdapter()

        assert adapter._get_api_key(model) == f"{env_var.lower()}-value"

    def test_unknown_model_falls_back_to_openrouter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENROUTER_API_KEY", "router-key")
        adapter = LiteLLMAdapter()

        assert adapter._get_api_key("mistral-large") == "router-key"

    def test_missing_env_returns_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        adapter = LiteLLMAdapter()

        assert adapter._get_api_key("gpt-4o") is None


class TestLiteLLMAdapterBuildKwargs:
    """Test _build_completion_kwargs."""

    def test_basic_kwargs(self) -> None:
        adapter = LiteLLMAdapter(api_key="sk-test", timeout=45.0)
        config = CompletionConfig(model="gpt-4o", temperature=0.2, max_tokens=1000)

        kwargs = adapter._build_completion_kwargs(_messages(), config)

        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"][0] == {"role": "system", "content": "Evaluate ideas."}
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 1000
        assert kwargs["top_p"] == 1.0
        assert kwargs["timeout"] == 45.0
        assert kwargs["api_key"] == "sk-test"
        assert "stop" not in kwargs
        assert "api_base" not in kwargs

    def test_stop_and_api_base(self) -> None:
        adapter = LiteLLMAdapter(api_key="sk-test", api_base="https://proxy.local")
        config = CompletionConfig(model="gpt-4o", stop=["</response>"])

        kwargs = adapter._build_completion_kwargs(_messages(), config)

        assert kwargs["stop"] == ["</response>"]
        assert kwargs["api_base"] == "https://proxy.local"

    def test_no_key_omits_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        adapter = LiteLLMAdapter()

        kwargs = adapter._build_completion_kwargs(_messages(), CompletionConfig(model="gpt-4o"))

        assert "api_key" not in kwargs


class TestLiteLLMAdapterParseResponse:
    """Test _parse_response."""

    def test_parses_content_and_usage(self) -> None:
        adapter = LiteLLMAdapter()
        config = CompletionConfig(model="gpt-4o")

        parsed = adapter._parse_response(create_mock_response(content="text"), config)

        assert parsed.content == "text"
        assert parsed.model == "gpt-4o"
        assert parsed.usage.prompt_tokens == 10
        assert parsed.usage.completion_tokens == 20
        assert parsed.usage.total_tokens == 30
        assert parsed.finish_reason == "stop"
        assert parsed.reasoning is None
        assert parsed.raw_response == {"id": "test"}

    def test_none_content_becomes_empty(self) -> None:
        adapter = LiteLLMAdapter()

        parsed = adapter._parse_response(
            create_mock_response(content=None), CompletionConfig(model="gpt-4o")
        )

        assert parsed.content == ""

    def test_missing_usage_is_zero(self) -> None:
        adapter = LiteLLMAdapter()
        response = create_mock_response()
        response.usage = None

        parsed = adapter._parse_response(response, CompletionConfig(model="gpt-4o"))

        assert parsed.usage.total_tokens == 0

    def test_reasoning_summary_is_kept(self) -> None:
        adapter = LiteLLMAdapter()
        response = create_mock_response()
        response.choices[0].message.reasoning_content = "Checked all ten dimensions."

        parsed = adapter._parse_response(response, CompletionConfig(model="o3-mini"))

        assert parsed.reasoning == "Checked all ten dimensions."

    def test_oversized_content_is_truncated(self) -> None:
        adapter = LiteLLMAdapter()
        response = create_mock_response(content="x" * (MAX_LLM_RESPONSE_LENGTH + 10))

        parsed = adapter._parse_response(response, CompletionConfig(model="gpt-4o"))

        assert len(parsed.content) == MAX_LLM_RESPONSE_LENGTH


class TestLiteLLMAdapterExtractProvider:
    """Test _extract_provider."""

    @pytest.mark.parametrize(
        ("model", "provider"),
        [
            ("openrouter/openai/gpt-4o", "openrouter"),
            ("minimax/MiniMax-Text-01", "minimax"),
            ("gpt-4o", "openai"),
            ("o1-preview", "openai"),
            ("claude-3-opus", "anthropic"),
            ("mistral-large", "unknown"),
        ],
    )
    def test_extract_provider(self, model: str, provider: str) -> None:
        assert LiteLLMAdapter()._extract_provider(model) == provider


class TestLiteLLMAdapterComplete:
    """Test LiteLLMAdapter.complete method."""

    async def test_successful_completion(self) -> None:
        adapter = LiteLLMAdapter(api_key="sk-test")
        config = CompletionConfig(model="gpt-4o")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response(content="Hi there!")

            result = await adapter.complete(_messages(), config)

        assert result.is_ok
        assert result.value.content == "Hi there!"
        assert mock_acompletion.call_args.kwargs["model"] == "gpt-4o"

    async def test_rate_limit_error_returns_result_err(self) -> None:
        adapter = LiteLLMAdapter(max_retries=1)
        config = CompletionConfig(model="gpt-4o")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.RateLimitError(
                message="Rate limited",
                llm_provider="openai",
                model="gpt-4o",
            )

            result = await adapter.complete(_messages(), config)

        assert result.is_err
        assert isinstance(result.error, ProviderError)
        assert result.error.provider == "openai"

    async def test_authentication_error(self) -> None:
        adapter = LiteLLMAdapter(max_retries=1)
        config = CompletionConfig(model="gpt-4o")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.AuthenticationError(
                message="Invalid key",
                llm_provider="openai",
                model="gpt-4o",
            )

            result = await adapter.complete(_messages(), config)

        assert result.is_err
        assert result.error.status_code == 401
        assert "Authentication failed" in result.error.message

    async def test_bad_request_is_not_retried(self) -> None:
        adapter = LiteLLMAdapter(max_retries=3)
        config = CompletionConfig(model="gpt-4o")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.BadRequestError(
                message="Bad request",
                llm_provider="openai",
                model="gpt-4o",
            )

            result = await adapter.complete(_messages(), config)

        assert result.is_err
        assert mock_acompletion.call_count == 1

    async def test_unexpected_error_is_wrapped(self) -> None:
        adapter = LiteLLMAdapter(max_retries=1)
        config = CompletionConfig(model="claude-3-opus")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = RuntimeError("boom")

            result = await adapter.complete(_messages(), config)

        assert result.is_err
        assert result.error.provider == "anthropic"
        assert "Unexpected error: boom" in result.error.message
        assert result.error.details["original_exception"] == "RuntimeError"


class TestLiteLLMAdapterRetryBehavior:
    """Test retry behavior using stamina."""

    async def test_retries_on_service_unavailable(self) -> None:
        """Retries once after a transient failure, then succeeds."""
        adapter = LiteLLMAdapter(max_retries=2)
        config = CompletionConfig(model="gpt-4o")
        mock_response = create_mock_response()

        call_count = 0

        async def side_effect(**kwargs: Any) -> MagicMock:
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise litellm.ServiceUnavailableError(
                    message="Service unavailable",
                    llm_provider="openai",
                    model="gpt-4o",
                )
            return mock_response

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = side_effect

            result = await adapter.complete(_messages(), config)

        assert result.is_ok
        assert call_count == 2

    async def test_gives_up_after_max_retries(self) -> None:
        adapter = LiteLLMAdapter(max_retries=2)
        config = CompletionConfig(model="gpt-4o")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.Timeout(
                message="Request timed out",
                llm_provider="openai",
                model="gpt-4o",
            )

            result = await adapter.complete(_messages(), config)

        assert result.is_err
        assert mock_acompletion.call_count == 2
