"""
Domain entities for the agent builder.

These are pure domain objects with no infrastructure dependencies.
They define the records (integrations, actions, agents, knowledge bases)
and the value objects exchanged between the executor, the LLM adapters,
the orchestrator and the retrieval engine.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

# ============================================
# Integrations & Actions
# ============================================


class VariableType(str, Enum):
    """Declared type of an action input variable."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


@dataclass
class ActionVariable:
    """One entry of an action's input schema.

    Attributes:
        name: Input key the LLM must supply
        type: Declared runtime kind
        description: Human/LLM-facing description
    """

    name: str
    type: VariableType
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionVariable:
        return cls(
            name=data["name"],
            type=VariableType(data.get("type", "string")),
            description=data.get("description") or "",
        )


class AuthLocation(str, Enum):
    """Where an auth entry is injected into the outgoing request."""

    HEADER = "header"
    QUERY = "query"


@dataclass
class AuthEntry:
    """A single auth injection rule of an integration.

    The value is a template; `{{UPPER_SNAKE}}` alone is a secret reference.
    """

    type: AuthLocation
    key: str
    value: str
    secret: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthEntry:
        return cls(
            type=AuthLocation(data["type"]),
            key=data["key"],
            value=data.get("value") or "",
            secret=bool(data.get("secret", False)),
        )


@dataclass
class Integration:
    """An HTTP endpoint template shared by one or more actions.

    Attributes:
        id: Integration identifier
        name: Unique integration name
        method: HTTP method (GET, POST, ...)
        url: URL template
        auth_enabled: Whether auth_config entries are applied
        auth_config: Ordered auth injection rules
        default_headers: Headers sent with every request
        default_params: Query params sent with every request
        description: Optional free-text description
    """

    id: str
    name: str
    method: str
    url: str
    auth_enabled: bool = False
    auth_config: list[AuthEntry] = field(default_factory=list)
    default_headers: dict[str, str] = field(default_factory=dict)
    default_params: dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None

    def __post_init__(self):
        self.method = self.method.upper()


@dataclass
class Action:
    """A named, LLM-invokable operation bound to an Integration.

    Attributes:
        id: Action identifier
        name: Unique action name (the tool name the LLM emits)
        description: LLM-facing description
        integration_id: Referenced integration
        execution_mode: How the action is run (stored, not interpreted)
        variables: Input schema, in declaration order
        url_template: Optional override of the integration URL
        body_template: Optional body template (POST/PUT/PATCH only)
        query_template: Optional map of query key -> template
        integration: The joined integration, when loaded
    """

    id: str
    name: str
    description: str
    integration_id: str
    execution_mode: str = "sync"
    variables: list[ActionVariable] = field(default_factory=list)
    url_template: Optional[str] = None
    body_template: Optional[str] = None
    query_template: Optional[dict[str, str]] = None
    integration: Optional[Integration] = None


# ============================================
# Secrets & Agents
# ============================================


@dataclass
class Secret:
    """An encrypted, named secret referenced from auth templates."""

    id: str
    name: str
    encrypted_value: str
    description: Optional[str] = None


class LLMProviderName(str, Enum):
    """LLM vendors an agent can be configured with."""

    OPENAI = "openai"
    GOOGLE = "google"


@dataclass
class Agent:
    """A configured LLM persona.

    Attributes:
        id: Agent identifier
        name: Unique agent name
        system_prompt: Persona instructions
        llm_provider: Vendor name ("openai" or "google")
        llm_model: Vendor model identifier
        api_key_encrypted: Encrypted vendor API key
    """

    id: str
    name: str
    system_prompt: str
    llm_provider: str
    llm_model: str
    api_key_encrypted: str = ""
    created_at: Optional[datetime] = None

    @property
    def namespace(self) -> str:
        return namespace_for_agent(self.id)


def namespace_for_agent(agent_id: str) -> str:
    """Vector index namespace holding one agent's knowledge."""
    return f"agent-{agent_id}"


def agent_id_from_namespace(namespace: str) -> str:
    prefix = "agent-"
    return namespace[len(prefix):] if namespace.startswith(prefix) else namespace


# ============================================
# Knowledge Bases
# ============================================


class KnowledgeBaseStatus(str, Enum):
    """Lifecycle of an uploaded document."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    INDEXED = "indexed"
    FAILED = "failed"


@dataclass
class KnowledgeBase:
    """An uploaded document attached to an agent."""

    id: str
    agent_id: str
    file_name: str
    file_type: str
    file_path: str
    file_size: int = 0
    status: KnowledgeBaseStatus = KnowledgeBaseStatus.UPLOADED
    chunk_count: int = 0
    embedding_provider: Optional[str] = None
    embedding_model: Optional[str] = None


@dataclass
class VectorChunk:
    """A chunk of extracted text with its embedding.

    chunk_index is unique per knowledge base and contiguous 0..n-1;
    vector_id is globally unique.
    """

    knowledge_base_id: str
    chunk_index: int
    text: str
    vector_id: str
    embedding: Optional[list[float]] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


# ============================================
# Chat
# ============================================


class MessageRole(str, Enum):
    """Role of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A single chat message."""

    role: MessageRole
    content: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(role=MessageRole(data["role"]), content=data.get("content") or "")


@dataclass
class ToolCall:
    """A structured {tool, inputs} directive parsed from model text."""

    tool: str
    inputs: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"tool": self.tool, "inputs": self.inputs}


@dataclass
class TokenUsage:
    """Best-effort token counters; unknown counters stay zero."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass
class LLMResponse:
    """Result of one provider completion."""

    content: str
    tool_call: Optional[ToolCall] = None
    usage: Optional[TokenUsage] = None


@dataclass
class ChatResult:
    """Final assistant message of a chat turn."""

    content: str
    role: MessageRole = MessageRole.ASSISTANT
    tool_calls: Optional[list[ToolCall]] = None
    tool_results: Optional[list[ExecutionResult]] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls is not None:
            result["toolCalls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_results is not None:
            result["toolResults"] = [tr.to_dict() for tr in self.tool_results]
        return result


# ============================================
# Action Execution
# ============================================


@dataclass
class RequestEcho:
    """The request that was sent, with sensitive headers masked."""

    url: str
    method: str
    headers: dict[str, str]
    body: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method,
            "headers": self.headers,
            "body": self.body,
        }


@dataclass
class ExecutionResult:
    """Outcome of ActionExecutor.execute. Failures are values, never raised.

    Attributes:
        success: Whether the upstream call succeeded
        status: Upstream HTTP status, when one was received
        data: Decoded response body (success only)
        error: Failure description (failure only)
        request: Echo of the sent request (success only)
    """

    success: bool
    status: Optional[int] = None
    data: Any = None
    error: Optional[str] = None
    request: Optional[RequestEcho] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.status is not None:
            result["status"] = self.status
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        if self.request is not None:
            result["request"] = self.request.to_dict()
        return result


# ============================================
# Retrieval
# ============================================


@dataclass
class EmbeddingResult:
    """An embedding vector and where it came from."""

    vector: list[float]
    dimensions: int
    model: Optional[str] = None
    is_mock: bool = False


@dataclass
class VectorItem:
    """A vector to upsert into an index namespace."""

    id: str
    values: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    """A ranked query hit."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """A hydrated knowledge-base search hit."""

    text: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "score": self.score, "metadata": self.metadata}
