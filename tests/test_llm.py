"""Tests for model providers."""

import json

import httpx
import pytest

from jellyfin_organizer.conversation import (
    ControllerState,
    ConversationController,
    ModelText,
    ModelToolCall,
    OperatorText,
    ToolCall,
    ToolResult,
    ToolResultBatch,
)
from jellyfin_organizer.llm import (
    AnthropicProvider,
    DummyProvider,
    DummyProviderConfig,
    LLMConfig,
    LLMResponse,
    OpenAIProvider,
    ProviderType,
    get_provider,
    list_providers,
)
from jellyfin_organizer.llm.exceptions import (
    LLMAuthenticationError,
    LLMConfigurationError,
    LLMConnectionError,
    LLMContextLengthError,
    LLMError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMResponseError,
)
from jellyfin_organizer.tools import ToolExecutor, ToolRegistry

TOOLS = [
    {
        "name": "list_directory",
        "description": "List a folder",
        "input_schema": {
            "type": "object",
            "properties": {"type": {"type": "string"}},
            "required": ["type"],
        },
    }
]

HISTORY = (
    OperatorText("Organize /scan/film.mkv"),
    ModelText("Let me look."),
    ModelToolCall(ToolCall("call_1", "list_directory", {"type": "movies"})),
    ModelToolCall(ToolCall("call_2", "list_directory", '{"type": "shows"}')),
    ToolResultBatch(
        (
            ToolResult("call_1", "Alien (1979)/\n"),
            ToolResult("call_2", "Path is not within permitted folders: x", is_error=True),
        )
    ),
)


def recording_transport(response_body, status_code=200):
    """MockTransport that records request bodies and answers with ``response_body``."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=response_body)

    return httpx.MockTransport(handler), requests


class TestLLMConfig:
    """Tests for LLMConfig."""

    def test_default_config(self):
        """Test default configuration values."""
        config = LLMConfig()
        assert config.provider == ProviderType.ANTHROPIC
        assert config.effective_model == "claude-3-7-sonnet-latest"
        assert config.effective_base_url == "https://api.anthropic.com/v1"
        assert config.max_tokens == 1024

    def test_local_provider_defaults(self):
        config = LLMConfig(provider=ProviderType.OLLAMA)
        assert config.effective_base_url == "http://localhost:11434/v1"

    def test_base_url_trailing_slash_removed(self):
        """Test that trailing slash is removed from base_url."""
        config = LLMConfig(base_url="http://localhost:1234/v1/")
        assert config.base_url == "http://localhost:1234/v1"

    def test_to_generation_params(self):
        """Test generation params extraction."""
        config = LLMConfig(model="m", temperature=0.2, max_tokens=500, extra_options={"top_p": 0.9})
        params = config.to_generation_params()
        assert params == {"model": "m", "max_tokens": 500, "temperature": 0.2, "top_p": 0.9}

    def test_temperature_omitted_by_default(self):
        assert "temperature" not in LLMConfig().to_generation_params()

    def test_with_overrides(self):
        """Test creating new config with overrides."""
        config = LLMConfig(max_tokens=100)
        new_config = config.with_overrides(max_tokens=200)
        assert config.max_tokens == 100
        assert new_config.max_tokens == 200

    def test_repr_masks_key(self):
        config = LLMConfig(api_key="sk-secret")
        assert "sk-secret" not in repr(config)
        assert config.get_api_key() == "sk-secret"


class TestFactory:
    """Tests for the provider factory."""

    def test_list_providers(self):
        providers = list_providers()
        for name in ("anthropic", "openai", "ollama", "lmstudio", "dummy"):
            assert name in providers

    def test_provider_types(self):
        assert isinstance(get_provider(LLMConfig(api_key="k")), AnthropicProvider)
        assert isinstance(get_provider(LLMConfig(provider=ProviderType.OLLAMA)), OpenAIProvider)
        assert isinstance(get_provider(LLMConfig(provider=ProviderType.LMSTUDIO)), OpenAIProvider)
        assert isinstance(get_provider(LLMConfig(provider=ProviderType.DUMMY)), DummyProvider)


class TestDummyProvider:
    """Tests for DummyProvider."""

    @pytest.mark.asyncio
    async def test_scripted_responses(self):
        provider = DummyProvider(
            LLMConfig(provider=ProviderType.DUMMY),
            responses=[LLMResponse(tool_calls=[ToolCall("t1", "list_directory", {})])],
        )
        first = await provider.complete(HISTORY[:1], tools=TOOLS)
        assert first.finish_reason == "tool_use"
        assert first.model == "dummy"

        second = await provider.complete(HISTORY[:1])
        assert second.content == "Nothing left to do."
        assert second.finish_reason == "end_turn"
        assert provider.call_count == 2
        assert provider.calls[0]["tools"] == TOOLS

    @pytest.mark.asyncio
    async def test_failure(self):
        provider = DummyProvider(
            LLMConfig(provider=ProviderType.DUMMY),
            DummyProviderConfig(should_fail=True, error_message="down"),
        )
        with pytest.raises(LLMError, match="down"):
            await provider.complete(HISTORY[:1])


class TestOpenAIProvider:
    """Tests for the OpenAI-compatible wire format."""

    @pytest.mark.asyncio
    async def test_request_mapping(self):
        """Test that turns, tools and system prompt map to chat messages."""
        transport, requests = recording_transport(
            {"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}]}
        )
        provider = OpenAIProvider(
            LLMConfig(provider=ProviderType.OPENAI, model="gpt-4o", api_key="sk-test"),
            transport=transport,
        )

        await provider.complete(HISTORY, tools=TOOLS, system_prompt="sys")

        request = requests[0]
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-test"

        body = json.loads(request.content)
        assert body["model"] == "gpt-4o"
        assert body["tools"][0] == {
            "type": "function",
            "function": {
                "name": "list_directory",
                "description": "List a folder",
                "parameters": TOOLS[0]["input_schema"],
            },
        }

        messages = body["messages"]
        assert messages[0] == {"role": "system", "content": "sys"}
        assert messages[1] == {"role": "user", "content": "Organize /scan/film.mkv"}
        assistant = messages[2]
        assert assistant["role"] == "assistant"
        assert assistant["content"] == "Let me look."
        assert [c["id"] for c in assistant["tool_calls"]] == ["call_1", "call_2"]
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {"type": "movies"}
        assert assistant["tool_calls"][1]["function"]["arguments"] == '{"type": "shows"}'
        assert messages[3] == {"role": "tool", "tool_call_id": "call_1", "content": "Alien (1979)/\n"}
        assert messages[4]["tool_call_id"] == "call_2"
        assert messages[4]["content"].startswith("Error: ")
        await provider.close()

    @pytest.mark.asyncio
    async def test_response_tool_calls(self):
        transport, _ = recording_transport(
            {
                "model": "qwen2.5:14b",
                "choices": [
                    {
                        "message": {
                            "content": None,
                            "tool_calls": [
                                {
                                    "id": "abc",
                                    "type": "function",
                                    "function": {
                                        "name": "list_directory",
                                        "arguments": '{"type": "movies"}',
                                    },
                                }
                            ],
                        },
                        "finish_reason": "tool_calls",
                    }
                ],
                "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            }
        )
        provider = OpenAIProvider(LLMConfig(provider=ProviderType.OLLAMA), transport=transport)

        response = await provider.complete(HISTORY[:1])

        assert response.content == ""
        assert response.tool_calls == [ToolCall("abc", "list_directory", '{"type": "movies"}')]
        assert response.finish_reason == "tool_calls"
        assert response.total_tokens == 15

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        transport, _ = recording_transport({"unexpected": True})
        provider = OpenAIProvider(LLMConfig(provider=ProviderType.OPENAI), transport=transport)
        with pytest.raises(LLMResponseError):
            await provider.complete(HISTORY[:1])


class TestAnthropicProvider:
    """Tests for the Anthropic Messages wire format."""

    @pytest.mark.asyncio
    async def test_request_mapping(self):
        """Test that tool results are batched into one user message."""
        transport, requests = recording_transport(
            {"content": [{"type": "text", "text": "ok"}], "stop_reason": "end_turn"}
        )
        provider = AnthropicProvider(LLMConfig(api_key="sk-ant"), transport=transport)

        await provider.complete(HISTORY, tools=TOOLS, system_prompt="sys")

        request = requests[0]
        assert request.url.path == "/v1/messages"
        assert request.headers["x-api-key"] == "sk-ant"
        assert request.headers["anthropic-version"] == "2023-06-01"

        body = json.loads(request.content)
        assert body["system"] == "sys"
        assert body["max_tokens"] == 1024
        assert body["tools"] == TOOLS

        messages = body["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assistant_blocks = messages[1]["content"]
        assert assistant_blocks[0] == {"type": "text", "text": "Let me look."}
        assert assistant_blocks[1]["input"] == {"type": "movies"}
        assert assistant_blocks[2]["input"] == {"type": "shows"}

        results = messages[2]["content"]
        assert [b["tool_use_id"] for b in results] == ["call_1", "call_2"]
        assert results[1]["is_error"] is True

    @pytest.mark.asyncio
    async def test_response_parsing(self):
        transport, _ = recording_transport(
            {
                "model": "claude-3-7-sonnet-latest",
                "content": [
                    {"type": "text", "text": "Checking."},
                    {"type": "tool_use", "id": "toolu_1", "name": "search_imdb", "input": {"search_term": "Heat"}},
                ],
                "stop_reason": "tool_use",
                "usage": {"input_tokens": 100, "output_tokens": 20},
            }
        )
        provider = AnthropicProvider(LLMConfig(api_key="k"), transport=transport)

        response = await provider.complete(HISTORY[:1])

        assert response.content == "Checking."
        assert response.tool_calls == [ToolCall("toolu_1", "search_imdb", {"search_term": "Heat"})]
        assert response.usage == {"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120}

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        provider = AnthropicProvider(LLMConfig())
        with pytest.raises(LLMConfigurationError):
            await provider.complete(HISTORY[:1])


class TestErrorMapping:
    """Tests for HTTP failure mapping."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, body, error_type",
        [
            (401, {"error": {"message": "bad key"}}, LLMAuthenticationError),
            (404, {"error": {"message": "no such model"}}, LLMModelNotFoundError),
            (429, {"error": {"message": "slow down"}}, LLMRateLimitError),
            (400, {"error": {"message": "prompt exceeds context window"}}, LLMContextLengthError),
            (500, {"error": "overloaded"}, LLMResponseError),
        ],
    )
    async def test_status_codes(self, status, body, error_type):
        transport, _ = recording_transport(body, status_code=status)
        provider = OpenAIProvider(LLMConfig(provider=ProviderType.OPENAI), transport=transport)
        with pytest.raises(error_type):
            await provider.complete(HISTORY[:1])

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = OpenAIProvider(
            LLMConfig(provider=ProviderType.LMSTUDIO), transport=httpx.MockTransport(handler)
        )
        with pytest.raises(LLMConnectionError):
            await provider.complete(HISTORY[:1])


class TestMalformedResponses:
    """Tests that unexpected response shapes become LLM errors."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "provider_type, body",
        [
            (ProviderType.ANTHROPIC, []),
            (ProviderType.ANTHROPIC, {"content": ["oops"]}),
            (ProviderType.OPENAI, {"choices": [{"message": "x"}]}),
            (ProviderType.OPENAI, {"choices": [{"message": {"tool_calls": ["x"]}}]}),
            (ProviderType.OPENAI, {"choices": [{"message": {"tool_calls": "x"}}]}),
        ],
    )
    async def test_controller_survives(self, provider_type, body):
        """Test that a bad body is reported and control goes back to the operator."""
        transport, _ = recording_transport(body)
        config = LLMConfig(provider=provider_type, api_key="sk-test")
        provider_class = AnthropicProvider if provider_type == ProviderType.ANTHROPIC else OpenAIProvider
        provider = provider_class(config, transport=transport)
        registry = ToolRegistry([])
        errors = []

        class Display:
            def prompt(self):
                pass

            def model_text(self, text):
                pass

            def tool_call(self, call):
                pass

            def tool_result(self, call, result):
                pass

            def error(self, message):
                errors.append(message)

        controller = ConversationController(
            provider=provider,
            registry=registry,
            executor=ToolExecutor(registry),
            read_input=lambda: None,
            display=Display(),
        )
        controller.seed("hi")

        assert await controller.step() is True
        assert controller.state == ControllerState.AWAITING_OPERATOR_INPUT
        assert len(errors) == 1
        assert "Unexpected response shape" in errors[0]
        assert controller.history == (OperatorText("hi"),)
        await provider.close()
