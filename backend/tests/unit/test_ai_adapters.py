"""
Tests for the Anthropic and OpenAI completion clients.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import anthropic
import httpx
import pytest

from adapters.ai import AnthropicCompletionClient, OpenAICompletionClient, build_completion_client
from core.domain.errors import AIProviderError
from core.interfaces.services import ModelTier
from infrastructure.config.settings import Settings


def _config(**overrides) -> Settings:
    values = {
        "jwt_secret_key": "test-secret",
        "structural_model": "claude-structural",
        "structural_max_tokens": 6000,
        "structural_temperature": 0.7,
        "enhancement_model": "claude-enhancement",
        "enhancement_max_tokens": 2500,
        "suggestion_model": "claude-suggestion",
        "suggestion_temperature": 0.8,
    }
    values.update(overrides)
    return Settings(**values)


def _message(text="reply text", stop_reason="end_turn"):
    return SimpleNamespace(
        stop_reason=stop_reason,
        content=[SimpleNamespace(type="text", text=text)],
    )


class TestAnthropicCompletionClient:
    """Tests for AnthropicCompletionClient."""

    @pytest.fixture
    def sdk(self):
        client = Mock()
        client.messages.create = AsyncMock(return_value=_message())
        return client

    @pytest.mark.asyncio
    async def test_structural_tier_uses_structural_settings(self, sdk):
        adapter = AnthropicCompletionClient(config=_config(), client=sdk)

        text = await adapter.complete("prompt", ModelTier.STRUCTURAL)

        assert text == "reply text"
        kwargs = sdk.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-structural"
        assert kwargs["max_tokens"] == 6000
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_enhancement_and_suggestion_tiers(self, sdk):
        adapter = AnthropicCompletionClient(config=_config(), client=sdk)

        await adapter.complete("p", ModelTier.ENHANCEMENT)
        assert sdk.messages.create.call_args.kwargs["model"] == "claude-enhancement"
        assert sdk.messages.create.call_args.kwargs["max_tokens"] == 2500

        await adapter.complete("p", ModelTier.SUGGESTION)
        assert sdk.messages.create.call_args.kwargs["model"] == "claude-suggestion"
        assert sdk.messages.create.call_args.kwargs["temperature"] == 0.8

    @pytest.mark.asyncio
    async def test_explicit_overrides_win(self, sdk):
        adapter = AnthropicCompletionClient(config=_config(), client=sdk)

        await adapter.complete("p", ModelTier.STRUCTURAL, max_tokens=100, temperature=0.0)

        kwargs = sdk.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 100
        assert kwargs["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_api_error_becomes_provider_error(self, sdk):
        sdk.messages.create.side_effect = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )
        adapter = AnthropicCompletionClient(config=_config(), client=sdk)

        with pytest.raises(AIProviderError):
            await adapter.complete("p", ModelTier.STRUCTURAL)
        assert sdk.messages.create.await_count == 1

    @pytest.mark.asyncio
    async def test_reply_without_text_block_is_empty(self, sdk):
        sdk.messages.create.return_value = SimpleNamespace(stop_reason="end_turn", content=[])
        adapter = AnthropicCompletionClient(config=_config(), client=sdk)

        assert await adapter.complete("p", ModelTier.STRUCTURAL) == ""

    @pytest.mark.asyncio
    async def test_truncated_reply_is_still_returned(self, sdk):
        sdk.messages.create.return_value = _message("partial", stop_reason="max_tokens")
        adapter = AnthropicCompletionClient(config=_config(), client=sdk)

        assert await adapter.complete("p", ModelTier.STRUCTURAL) == "partial"

    @pytest.mark.asyncio
    async def test_missing_key_raises(self):
        adapter = AnthropicCompletionClient(config=_config(anthropic_api_key=None))

        with pytest.raises(AIProviderError, match="ANTHROPIC_API_KEY"):
            await adapter.complete("p", ModelTier.STRUCTURAL)


class TestOpenAICompletionClient:
    """Tests for OpenAICompletionClient."""

    @pytest.fixture
    def mock_response(self):
        def _create_response(status_code=200, json_data=None, text=""):
            response = Mock(spec=httpx.Response)
            response.status_code = status_code
            response.json.return_value = json_data or {}
            response.text = text
            return response

        return _create_response

    @pytest.fixture
    def http_client(self, mock_response):
        client = Mock(spec=httpx.AsyncClient)
        client.post = AsyncMock(
            return_value=mock_response(json_data={"choices": [{"message": {"content": "openai text"}}]})
        )
        return client

    @pytest.mark.asyncio
    async def test_complete_posts_chat_request(self, http_client):
        adapter = OpenAICompletionClient(api_key="sk-test", config=_config(), http_client=http_client)

        text = await adapter.complete("prompt", ModelTier.ENHANCEMENT)

        assert text == "openai text"
        call = http_client.post.call_args
        assert call.args[0] == OpenAICompletionClient.CHAT_COMPLETIONS_URL
        assert call.kwargs["headers"]["Authorization"] == "Bearer sk-test"
        payload = call.kwargs["json"]
        # Anthropic model ids are swapped for the tier's OpenAI default
        assert payload["model"] == "gpt-4o-mini"
        assert payload["max_tokens"] == 2500
        assert payload["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_configured_openai_model_is_kept(self, http_client):
        adapter = OpenAICompletionClient(
            api_key="sk-test", config=_config(structural_model="gpt-4.1"), http_client=http_client
        )

        await adapter.complete("p", ModelTier.STRUCTURAL)

        assert http_client.post.call_args.kwargs["json"]["model"] == "gpt-4.1"

    @pytest.mark.asyncio
    async def test_error_status_raises(self, http_client, mock_response):
        http_client.post.return_value = mock_response(status_code=429, text="rate limited")
        adapter = OpenAICompletionClient(api_key="sk-test", config=_config(), http_client=http_client)

        with pytest.raises(AIProviderError, match="429"):
            await adapter.complete("p", ModelTier.STRUCTURAL)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, http_client):
        http_client.post.side_effect = httpx.ConnectTimeout("timed out")
        adapter = OpenAICompletionClient(api_key="sk-test", config=_config(), http_client=http_client)

        with pytest.raises(AIProviderError):
            await adapter.complete("p", ModelTier.STRUCTURAL)

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, http_client, mock_response):
        http_client.post.return_value = mock_response(json_data={"unexpected": True})
        adapter = OpenAICompletionClient(api_key="sk-test", config=_config(), http_client=http_client)

        with pytest.raises(AIProviderError):
            await adapter.complete("p", ModelTier.STRUCTURAL)

    @pytest.mark.asyncio
    async def test_missing_key_raises(self):
        adapter = OpenAICompletionClient(config=_config(openai_api_key=None))

        with pytest.raises(AIProviderError, match="OPENAI_API_KEY"):
            await adapter.complete("p", ModelTier.STRUCTURAL)


def test_build_completion_client_follows_provider_setting():
    assert isinstance(build_completion_client(_config(ai_provider="openai")), OpenAICompletionClient)
    assert isinstance(build_completion_client(_config(ai_provider="anthropic")), AnthropicCompletionClient)
