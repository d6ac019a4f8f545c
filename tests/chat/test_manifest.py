"""
Tests for tool manifest rendering and tool-call parsing.
"""

import pytest

from src.agentbuilder.domain.entities import Action, ActionVariable, ToolCall, VariableType
from src.agentbuilder.llm.manifest import ToolManifestBuilder


@pytest.fixture
def builder():
    return ToolManifestBuilder()


@pytest.fixture
def weather_action():
    return Action(
        id="act-1",
        name="getWeather",
        description="Get current weather",
        integration_id="int-1",
        variables=[
            ActionVariable(name="city", type=VariableType.STRING),
            ActionVariable(name="days", type=VariableType.NUMBER),
        ],
    )


# ============================================
# Instruction
# ============================================


class TestBuildInstruction:
    def test_no_tools_returns_prompt_unchanged(self, builder):
        assert builder.build_instruction("You are helpful.", []) == "You are helpful."

    def test_lists_each_tool(self, builder, weather_action):
        instruction = builder.build_instruction("You are helpful.", [weather_action])

        assert instruction.startswith("You are helpful.\n\nYou have access to these actions:")
        assert "- **getWeather**: Get current weather\n  Variables: city (string), days (number)" in instruction
        assert "keys: tool, inputs." in instruction
        assert '{"tool": "actionName", "inputs": {"var1": "value1", "var2": 123}}' in instruction

    def test_tool_without_variables(self, builder):
        action = Action(id="a", name="ping", description="Ping", integration_id="i")

        assert builder.render_tool(action) == "- **ping**: Ping\n  Variables: "


# ============================================
# Parsing
# ============================================


class TestParseToolCall:
    def test_parses_fenced_block(self, builder):
        text = 'Let me check.\n```json\n{"tool": "getWeather", "inputs": {"city": "Paris"}}\n```'

        assert builder.parse_tool_call(text) == ToolCall(tool="getWeather", inputs={"city": "Paris"})

    def test_first_block_wins(self, builder):
        text = (
            '```json\n{"tool": "first", "inputs": {}}\n```\n'
            '```json\n{"tool": "second", "inputs": {}}\n```'
        )

        assert builder.parse_tool_call(text).tool == "first"

    def test_multiline_json(self, builder):
        text = '```json\n{\n  "tool": "getWeather",\n  "inputs": {"city": "Paris"}\n}\n```'

        assert builder.parse_tool_call(text).inputs == {"city": "Paris"}

    def test_empty_inputs_is_valid(self, builder):
        assert builder.parse_tool_call('```json\n{"tool": "ping", "inputs": {}}\n```') == ToolCall(
            tool="ping", inputs={}
        )

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "The weather is sunny.",
            '{"tool": "getWeather", "inputs": {}}',
            "```json\n{not json}\n```",
            '```json\n{"inputs": {"city": "Paris"}}\n```',
            '```json\n{"tool": "getWeather"}\n```',
            '```json\n{"tool": "", "inputs": {}}\n```',
            '```json\n{"tool": 5, "inputs": {}}\n```',
            '```json\n{"tool": "getWeather", "inputs": "Paris"}\n```',
            '```json\n["getWeather"]\n```',
        ],
    )
    def test_returns_none_for_invalid(self, builder, text):
        assert builder.parse_tool_call(text) is None
