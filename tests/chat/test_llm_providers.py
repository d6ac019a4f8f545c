"""
Tests for the OpenAI and Gemini chat providers and the provider registry.

Vendor SDK clients are replaced through LLMProviderConfig.client_factory,
so no network access is needed.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.agentbuilder.domain.entities import (
    Action,
    ActionVariable,
    Message,
    MessageRole,
    ToolCall,
    VariableType,
)
from src.agentbuilder.exceptions import UnsupportedProviderError
from src.agentbuilder.llm.base import LLMProviderConfig, LLMProviderError
from src.agentbuilder.llm.factory import LLMProviderRegistry
from src.agentbuilder.llm.google import GoogleProvider
from src.agentbuilder.llm.openai import OpenAIProvider


TOOL_REPLY = '```json\n{"tool": "getWeather", "inputs": {"city": "Paris"}}\n```'


@pytest.fixture
def weather_tool():
    return Action(
        id="act-1",
        name="getWeather",
        description="Get current weather",
        integration_id="int-1",
        variables=[ActionVariable(name="city", type=VariableType.STRING)],
    )


@pytest.fixture
def messages():
    return [
        Message(role=MessageRole.SYSTEM, content="You are a weather bot."),
        Message(role=MessageRole.USER, content="Hi"),
        Message(role=MessageRole.ASSISTANT, content="Hello!"),
        Message(role=MessageRole.USER, content="Weather in Paris?"),
    ]


# ============================================
# OpenAI
# ============================================


@pytest.fixture
def mock_openai_client():
    client = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = TOOL_REPLY
    response.usage = MagicMock(prompt_tokens=12, completion_tokens=8, total_tokens=20)
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_sends_system_instruction_first(self, mock_openai_client, messages, weather_tool):
        factory = MagicMock(return_value=mock_openai_client)
        provider = OpenAIProvider(LLMProviderConfig(client_factory=factory))

        await provider.chat("gpt-4o-mini", messages, [weather_tool], "sk-test")

        factory.assert_called_once_with("sk-test")
        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.7
        sent = kwargs["messages"]
        assert sent[0]["role"] == "system"
        assert sent[0]["content"].startswith("You are a weather bot.\n\nYou have access to these actions:")
        assert [m["role"] for m in sent[1:]] == ["user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_parses_tool_call_and_usage(self, mock_openai_client, messages, weather_tool):
        provider = OpenAIProvider(LLMProviderConfig(client_factory=lambda key: mock_openai_client))

        response = await provider.chat("gpt-4o-mini", messages, [weather_tool], "sk-test")

        assert response.content == TOOL_REPLY
        assert response.tool_call == ToolCall(tool="getWeather", inputs={"city": "Paris"})
        assert response.usage.to_dict() == {"promptTokens": 12, "completionTokens": 8, "totalTokens": 20}

    @pytest.mark.asyncio
    async def test_null_content_becomes_empty(self, mock_openai_client, messages):
        mock_openai_client.chat.completions.create.return_value.choices[0].message.content = None
        mock_openai_client.chat.completions.create.return_value.usage = None
        provider = OpenAIProvider(LLMProviderConfig(client_factory=lambda key: mock_openai_client))

        response = await provider.chat("gpt-4o-mini", messages, [], "sk-test")

        assert response.content == ""
        assert response.tool_call is None
        assert response.usage.total_tokens == 0

    @pytest.mark.asyncio
    async def test_no_tools_keeps_system_prompt(self, mock_openai_client, messages):
        provider = OpenAIProvider(LLMProviderConfig(client_factory=lambda key: mock_openai_client))

        await provider.chat("gpt-4o-mini", messages, [], "sk-test")

        sent = mock_openai_client.chat.completions.create.call_args.kwargs["messages"]
        assert sent[0] == {"role": "system", "content": "You are a weather bot."}

    @pytest.mark.asyncio
    async def test_requires_a_conversation(self, mock_openai_client):
        provider = OpenAIProvider(LLMProviderConfig(client_factory=lambda key: mock_openai_client))

        with pytest.raises(LLMProviderError):
            await provider.chat(
                "gpt-4o-mini", [Message(role=MessageRole.SYSTEM, content="x")], [], "sk-test"
            )

    @pytest.mark.asyncio
    async def test_vendor_errors_propagate(self, mock_openai_client, messages):
        mock_openai_client.chat.completions.create.side_effect = RuntimeError("rate limited")
        provider = OpenAIProvider(LLMProviderConfig(client_factory=lambda key: mock_openai_client))

        with pytest.raises(RuntimeError, match="rate limited"):
            await provider.chat("gpt-4o-mini", messages, [], "sk-test")


# ============================================
# Google
# ============================================


@pytest.fixture
def mock_genai_client():
    client = MagicMock()
    response = MagicMock()
    response.text = "It is sunny."
    response.usage_metadata = MagicMock(
        prompt_token_count=30, candidates_token_count=4, total_token_count=34
    )
    client.aio.models.generate_content = AsyncMock(return_value=response)
    return client


class TestGoogleProvider:
    def test_default_output_cap(self):
        assert GoogleProvider().config.max_output_tokens == 2048

    def test_shared_config_is_not_mutated(self):
        config = LLMProviderConfig()
        GoogleProvider(config)
        assert config.max_output_tokens is None

    @pytest.mark.asyncio
    async def test_history_and_prefixed_last_message(self, mock_genai_client, messages, weather_tool):
        provider = GoogleProvider(LLMProviderConfig(client_factory=lambda key: mock_genai_client))

        response = await provider.chat("gemini-1.5-flash", messages, [weather_tool], "g-key")

        kwargs = mock_genai_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"
        contents = kwargs["contents"]
        assert [c.role for c in contents] == ["user", "model", "user"]
        assert contents[0].parts[0].text == "Hi"
        last_text = contents[-1].parts[0].text
        assert last_text.startswith("You are a weather bot.\n\nYou have access to these actions:")
        assert last_text.endswith("\n\nWeather in Paris?")
        assert kwargs["config"].temperature == 0.7
        assert kwargs["config"].max_output_tokens == 2048

        assert response.content == "It is sunny."
        assert response.tool_call is None
        assert response.usage.total_tokens == 34

    @pytest.mark.asyncio
    async def test_single_message(self, mock_genai_client):
        provider = GoogleProvider(LLMProviderConfig(client_factory=lambda key: mock_genai_client))

        await provider.chat("gemini-1.5-flash", [Message(role=MessageRole.USER, content="Hi")], [], "k")

        contents = mock_genai_client.aio.models.generate_content.call_args.kwargs["contents"]
        assert len(contents) == 1
        assert contents[0].parts[0].text == "\n\nHi"

    @pytest.mark.asyncio
    async def test_trailing_assistant_turn_is_sent_as_user(self, mock_genai_client):
        provider = GoogleProvider(LLMProviderConfig(client_factory=lambda key: mock_genai_client))
        conversation = [
            Message(role=MessageRole.USER, content="Hi"),
            Message(role=MessageRole.ASSISTANT, content="Hello! Ask me about the weather."),
        ]

        await provider.chat("gemini-1.5-flash", conversation, [], "k")

        contents = mock_genai_client.aio.models.generate_content.call_args.kwargs["contents"]
        assert [c.role for c in contents] == ["user", "user"]
        assert contents[-1].parts[0].text.endswith("Hello! Ask me about the weather.")

    @pytest.mark.asyncio
    async def test_missing_usage_is_zero(self, mock_genai_client, messages):
        mock_genai_client.aio.models.generate_content.return_value.usage_metadata = None
        mock_genai_client.aio.models.generate_content.return_value.text = None
        provider = GoogleProvider(LLMProviderConfig(client_factory=lambda key: mock_genai_client))

        response = await provider.chat("gemini-1.5-flash", messages, [], "k")

        assert response.content == ""
        assert response.usage.to_dict() == {"promptTokens": 0, "completionTokens": 0, "totalTokens": 0}


# ============================================
# Registry
# ============================================


class TestLLMProviderRegistry:
    def test_default_has_both_vendors(self):
        registry = LLMProviderRegistry.default()

        assert isinstance(registry.get("openai"), OpenAIProvider)
        assert isinstance(registry.get("Google"), GoogleProvider)

    def test_unknown_vendor(self):
        with pytest.raises(UnsupportedProviderError, match="Unsupported LLM provider: anthropic"):
            LLMProviderRegistry.default().get("anthropic")

    def test_register(self):
        provider = MagicMock()
        provider.provider_name = "custom"
        registry = LLMProviderRegistry()

        registry.register(provider)

        assert registry.get("custom") is provider
