"""
Chat Orchestrator.

Drives one chat turn for an agent as an explicit two-phase state machine:

    INIT -> FIRST_COMPLETION -> DONE
    INIT -> FIRST_COMPLETION -> TOOL_EXEC -> SECOND_COMPLETION -> DONE

The first completion sees the agent's enabled tool catalog. If it asks for
an enabled action, the action is executed and its result is folded into a
second completion that is always issued with an empty catalog, so a turn
can never invoke more than one tool.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..actions.executor import ActionExecutor
from ..domain.entities import (
    Action,
    Agent,
    ChatResult,
    ExecutionResult,
    LLMResponse,
    Message,
    MessageRole,
    ToolCall,
)
from ..domain.ports import IAgentRepository, IEncryptionService
from ..exceptions import AgentNotFoundError, DecryptionError
from ..llm.factory import LLMProviderRegistry

logger = logging.getLogger(__name__)


class ChatState(str, Enum):
    """States of a chat turn; DONE is terminal."""

    INIT = "init"
    FIRST_COMPLETION = "first_completion"
    TOOL_EXEC = "tool_exec"
    SECOND_COMPLETION = "second_completion"
    DONE = "done"


@dataclass
class ChatTurn:
    """Mutable state carried through one turn.

    Attributes:
        agent: The agent answering
        api_key: Decrypted vendor API key
        messages: Caller-supplied conversation
        tools: Enabled tool catalog for the first completion
        state: Current state
        conversation: Messages sent to the provider (system prompt first)
        first_response: Result of the first completion
        tool_call: Parsed tool call, kept even when it names no enabled action
        action: The enabled action the tool call resolved to
        execution_result: Outcome of the action
        final_content: Text of the final assistant message
        provider_calls: Number of completions issued so far
    """

    agent: Agent
    api_key: str
    messages: list[Message]
    tools: list[Action]
    state: ChatState = ChatState.INIT
    conversation: list[Message] = field(default_factory=list)
    first_response: Optional[LLMResponse] = None
    tool_call: Optional[ToolCall] = None
    action: Optional[Action] = None
    execution_result: Optional[ExecutionResult] = None
    final_content: str = ""
    provider_calls: int = 0


def format_tool_result(tool_name: str, result: ExecutionResult) -> str:
    """Synthetic user message summarizing an action result."""
    if result.success:
        payload = json.dumps(result.data, indent=2, ensure_ascii=False, default=str)
        return (
            f'The action "{tool_name}" was executed successfully. Here is the data:\n'
            f"{payload}\n\n"
            "Please provide a natural, conversational response to the user based on "
            "this data. Answer their specific question directly."
        )
    return f'The action "{tool_name}" failed with error: {result.error}'


class ChatOrchestrator:
    """Runs chat turns for agents.

    Args:
        agent_repository: Loads agents and their enabled actions
        llm_registry: Resolves the agent's LLM vendor
        executor: Executes the action a completion asks for
        encryption: Decrypts the agent's stored API key
    """

    def __init__(
        self,
        agent_repository: IAgentRepository,
        llm_registry: LLMProviderRegistry,
        executor: ActionExecutor,
        encryption: IEncryptionService,
    ):
        self.agent_repository = agent_repository
        self.llm_registry = llm_registry
        self.executor = executor
        self.encryption = encryption

        self._handlers: dict[ChatState, Callable[[ChatTurn], Awaitable[ChatState]]] = {
            ChatState.INIT: self._start,
            ChatState.FIRST_COMPLETION: self._first_completion,
            ChatState.TOOL_EXEC: self._execute_tool,
            ChatState.SECOND_COMPLETION: self._second_completion,
        }

    async def chat(self, agent_id: str, messages: list[Message]) -> ChatResult:
        """Answer the conversation as the given agent.

        Raises:
            AgentNotFoundError: No agent with that id
            DecryptionError: The agent's API key is missing or unreadable
        """
        agent = await self.agent_repository.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        try:
            api_key = self.encryption.decrypt(agent.api_key_encrypted)
        except DecryptionError as e:
            raise DecryptionError(f"API key for agent {agent_id} could not be decrypted", cause=e)
        tools = await self.agent_repository.list_enabled_actions(agent_id)

        return await self.run_turn(agent, api_key, messages, tools)

    async def run_turn(
        self,
        agent: Agent,
        api_key: str,
        messages: list[Message],
        tools: list[Action],
    ) -> ChatResult:
        """Drive the state machine to DONE and build the final message."""
        turn = ChatTurn(agent=agent, api_key=api_key, messages=messages, tools=tools)

        while turn.state != ChatState.DONE:
            handler = self._handlers[turn.state]
            next_state = await handler(turn)
            logger.debug(f"Agent {agent.id}: {turn.state.value} -> {next_state.value}")
            turn.state = next_state

        return self._build_result(turn)

    # ============================================
    # State handlers
    # ============================================

    async def _start(self, turn: ChatTurn) -> ChatState:
        turn.conversation = [
            Message(role=MessageRole.SYSTEM, content=turn.agent.system_prompt),
            *turn.messages,
        ]
        return ChatState.FIRST_COMPLETION

    async def _first_completion(self, turn: ChatTurn) -> ChatState:
        turn.first_response = await self._complete(turn, turn.conversation, turn.tools)
        turn.final_content = turn.first_response.content
        turn.tool_call = turn.first_response.tool_call

        if turn.tool_call is None:
            return ChatState.DONE

        turn.action = next((a for a in turn.tools if a.name == turn.tool_call.tool), None)
        if turn.action is None:
            logger.warning(
                f"Agent {turn.agent.id} requested unknown or disabled action "
                f"'{turn.tool_call.tool}', ignoring tool call"
            )
            return ChatState.DONE

        return ChatState.TOOL_EXEC

    async def _execute_tool(self, turn: ChatTurn) -> ChatState:
        logger.info(f"Agent {turn.agent.id} calling action {turn.action.name}")
        turn.execution_result = await self.executor.execute(
            turn.action.id, turn.tool_call.inputs
        )
        return ChatState.SECOND_COMPLETION

    async def _second_completion(self, turn: ChatTurn) -> ChatState:
        follow_up = [
            *turn.conversation,
            Message(role=MessageRole.ASSISTANT, content=turn.first_response.content),
            Message(
                role=MessageRole.USER,
                content=format_tool_result(turn.tool_call.tool, turn.execution_result),
            ),
        ]
        # Empty catalog: no second tool call is possible
        response = await self._complete(turn, follow_up, [])
        turn.final_content = response.content
        return ChatState.DONE

    # ============================================
    # Helpers
    # ============================================

    async def _complete(
        self, turn: ChatTurn, messages: list[Message], tools: list[Action]
    ) -> LLMResponse:
        provider = self.llm_registry.get(turn.agent.llm_provider)
        turn.provider_calls += 1
        return await provider.chat(turn.agent.llm_model, messages, tools, turn.api_key)

    @staticmethod
    def _build_result(turn: ChatTurn) -> ChatResult:
        result = ChatResult(content=turn.final_content)
        if turn.tool_call is not None:
            result.tool_calls = [turn.tool_call]
        if turn.execution_result is not None:
            result.tool_results = [turn.execution_result]
        return result
