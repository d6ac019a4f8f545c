"""
Tool manifest rendering and tool-call parsing.

Tools are advertised to the model as text appended to the system
instruction, and the model answers with a fenced ``json`` block:

    ```json
    {"tool": "getWeather", "inputs": {"city": "Paris"}}
    ```

Both LLM vendors share this module, so the instruction and the parser are
identical regardless of which vendor serves the agent.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Optional

from ..domain.entities import Action, ToolCall

logger = logging.getLogger(__name__)

TOOL_CALL_BLOCK = re.compile(r"```json\s*\n([\s\S]*?)\n```")

TOOL_INSTRUCTIONS = """You have access to these actions:

{manifest}

When you decide an API call is required, output exactly one JSON object inside a single ```json code block with keys: tool, inputs.
Do not output any extra text around the JSON. Wait for the platform to return the action result and then continue the reply.

Example:
```json
{{"tool": "actionName", "inputs": {{"var1": "value1", "var2": 123}}}}
```"""


class ToolManifestBuilder:
    """Builds the tool-aware system instruction and parses tool calls."""

    @staticmethod
    def render_tool(tool: Action) -> str:
        variables = ", ".join(f"{v.name} ({v.type.value})" for v in tool.variables)
        return f"- **{tool.name}**: {tool.description}\n  Variables: {variables}"

    def build_instruction(self, system_prompt: str, tools: list[Action]) -> str:
        """Append the tool catalog to the system prompt.

        Returns the system prompt unchanged when there are no tools.
        """
        if not tools:
            return system_prompt

        manifest = "\n".join(self.render_tool(tool) for tool in tools)
        return f"{system_prompt}\n\n{TOOL_INSTRUCTIONS.format(manifest=manifest)}"

    def parse_tool_call(self, text: str) -> Optional[ToolCall]:
        """Extract the first fenced json tool call from model output.

        Never raises; an absent, malformed or incomplete block yields None.
        An empty ``inputs`` object is a valid call to a tool without variables.
        """
        if not text:
            return None

        match = TOOL_CALL_BLOCK.search(text)
        if not match:
            return None

        try:
            parsed = json.loads(match.group(1))
        except ValueError as e:
            logger.warning(f"Failed to parse tool call: {e}")
            return None

        if not isinstance(parsed, dict):
            return None

        tool = parsed.get("tool")
        inputs = parsed.get("inputs")
        if not tool or not isinstance(tool, str) or not isinstance(inputs, dict):
            return None

        return ToolCall(tool=tool, inputs=inputs)
