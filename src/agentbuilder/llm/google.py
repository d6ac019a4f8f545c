"""
Google Gemini provider (google-genai SDK).

Gemini has no system role in the conversation: prior turns are sent as
history with "assistant" mapped to "model", and the system instruction is
prefixed to the final message, which is always sent as the user turn.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from google import genai
from google.genai import types

from ..domain.entities import LLMProviderName, Message, MessageRole, TokenUsage
from .base import BaseLLMProvider, LLMProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_TOKENS = 2048


class GoogleProvider(BaseLLMProvider):
    """Gemini chat provider."""

    def __init__(self, config: Optional[LLMProviderConfig] = None, **kwargs):
        config = config or LLMProviderConfig()
        if config.max_output_tokens is None:
            config = replace(config, max_output_tokens=DEFAULT_MAX_OUTPUT_TOKENS)
        super().__init__(config, **kwargs)

    @property
    def provider_name(self) -> str:
        return LLMProviderName.GOOGLE.value

    def _default_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    @staticmethod
    def _to_content(role: str, text: str) -> types.Content:
        return types.Content(role=role, parts=[types.Part(text=text)])

    def _build_contents(
        self, system_instruction: str, conversation: list[Message]
    ) -> list[types.Content]:
        history = [
            self._to_content(
                "model" if m.role == MessageRole.ASSISTANT else "user", m.content
            )
            for m in conversation[:-1]
        ]
        last = conversation[-1]
        prompt = f"{system_instruction}\n\n{last.content}"
        history.append(self._to_content("user", prompt))
        return history

    async def _complete(
        self,
        client: Any,
        model: str,
        system_instruction: str,
        conversation: list[Message],
    ) -> tuple[str, TokenUsage]:
        response = await client.aio.models.generate_content(
            model=model,
            contents=self._build_contents(system_instruction, conversation),
            config=types.GenerateContentConfig(
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
            ),
        )

        content = response.text or ""

        # Counters are missing on some tiers
        usage = getattr(response, "usage_metadata", None)
        return content, TokenUsage(
            prompt_tokens=getattr(usage, "prompt_token_count", None) or 0,
            completion_tokens=getattr(usage, "candidates_token_count", None) or 0,
            total_tokens=getattr(usage, "total_token_count", None) or 0,
        )
