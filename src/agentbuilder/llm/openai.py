"""
OpenAI Chat Completions provider.

The tool catalog travels inside the system message; the model's reply is
plain text that may contain a fenced json tool call.
"""

from __future__ import annotations

import logging
from typing import Any

from openai import AsyncOpenAI

from ..domain.entities import LLMProviderName, Message, TokenUsage
from .base import BaseLLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI chat provider.

    Usage:
        provider = OpenAIProvider()
        response = await provider.chat("gpt-4o-mini", messages, tools, api_key)
    """

    @property
    def provider_name(self) -> str:
        return LLMProviderName.OPENAI.value

    def _default_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key)

    async def _complete(
        self,
        client: Any,
        model: str,
        system_instruction: str,
        conversation: list[Message],
    ) -> tuple[str, TokenUsage]:
        api_messages = [{"role": "system", "content": system_instruction}]
        api_messages.extend(
            {"role": m.role.value, "content": m.content} for m in conversation
        )

        response = await client.chat.completions.create(
            model=model,
            messages=api_messages,
            temperature=self.config.temperature,
        )

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        usage = response.usage
        return content, TokenUsage(
            prompt_tokens=getattr(usage, "prompt_tokens", None) or 0,
            completion_tokens=getattr(usage, "completion_tokens", None) or 0,
            total_tokens=getattr(usage, "total_tokens", None) or 0,
        )
