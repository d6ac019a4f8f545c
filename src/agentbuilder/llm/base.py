"""
Base LLM Provider Implementation.

Provides the behaviour shared by every chat vendor: building the
tool-aware system instruction, separating it from the conversation, and
parsing the tool call out of the reply. Vendors only implement the wire
call.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..domain.entities import Action, LLMResponse, Message, MessageRole, TokenUsage
from ..domain.ports import ILLMProvider
from ..exceptions import AgentBuilderError
from .manifest import ToolManifestBuilder

logger = logging.getLogger(__name__)


class LLMProviderError(AgentBuilderError):
    """Raised when a provider is called with a conversation it cannot send.

    Vendor SDK errors are not wrapped; they propagate unmodified.
    """

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if provider:
            details["provider"] = provider
        super().__init__(message, code="LLM_PROVIDER_ERROR", details=details, **kwargs)


@dataclass
class LLMProviderConfig:
    """Configuration for LLM providers.

    Attributes:
        temperature: Sampling temperature for every completion
        max_output_tokens: Output cap (only applied by vendors that take one)
        client_factory: Builds a vendor SDK client from an API key; the
            default builds the real client
        extra: Vendor-specific options
    """

    temperature: float = 0.7
    max_output_tokens: Optional[int] = None
    client_factory: Optional[Callable[[str], Any]] = None
    extra: dict[str, Any] = field(default_factory=dict)


class BaseLLMProvider(ILLMProvider, ABC):
    """Base class for LLM provider implementations.

    Subclasses implement _complete() for their vendor; chat() wraps it
    with the shared manifest handling and tool-call parsing.
    """

    def __init__(
        self,
        config: Optional[LLMProviderConfig] = None,
        manifest: Optional[ToolManifestBuilder] = None,
    ):
        self.config = config or LLMProviderConfig()
        self.manifest = manifest or ToolManifestBuilder()

    def _client(self, api_key: str) -> Any:
        factory = self.config.client_factory or self._default_client
        return factory(api_key)

    @abstractmethod
    def _default_client(self, api_key: str) -> Any:
        """Create the vendor SDK client for an API key."""
        pass

    @abstractmethod
    async def _complete(
        self,
        client: Any,
        model: str,
        system_instruction: str,
        conversation: list[Message],
    ) -> tuple[str, TokenUsage]:
        """Issue the vendor call and return (content, usage)."""
        pass

    @staticmethod
    def _split_messages(messages: list[Message]) -> tuple[str, list[Message]]:
        """Return the first system message's content and the non-system messages."""
        system_prompt = next(
            (m.content for m in messages if m.role == MessageRole.SYSTEM), ""
        )
        conversation = [m for m in messages if m.role != MessageRole.SYSTEM]
        return system_prompt, conversation

    async def chat(
        self,
        model: str,
        messages: list[Message],
        tools: list[Action],
        api_key: str,
    ) -> LLMResponse:
        system_prompt, conversation = self._split_messages(messages)
        if not conversation:
            raise LLMProviderError(
                "At least one user or assistant message is required",
                provider=self.provider_name,
            )

        system_instruction = self.manifest.build_instruction(system_prompt, tools)

        logger.debug(
            f"{self.provider_name} chat: model={model}, messages={len(conversation)}, "
            f"tools={len(tools)}"
        )
        content, usage = await self._complete(
            self._client(api_key), model, system_instruction, conversation
        )

        return LLMResponse(
            content=content,
            tool_call=self.manifest.parse_tool_call(content),
            usage=usage,
        )
