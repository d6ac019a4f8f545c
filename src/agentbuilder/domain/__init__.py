"""Domain entities and port interfaces for the agent builder."""

from .entities import (
    Action,
    ActionVariable,
    Agent,
    AuthEntry,
    AuthLocation,
    ChatResult,
    EmbeddingResult,
    ExecutionResult,
    Integration,
    KnowledgeBase,
    KnowledgeBaseStatus,
    LLMProviderName,
    LLMResponse,
    Message,
    MessageRole,
    RequestEcho,
    SearchResult,
    Secret,
    TokenUsage,
    ToolCall,
    VariableType,
    VectorChunk,
    VectorItem,
    VectorMatch,
    agent_id_from_namespace,
    namespace_for_agent,
)
from .ports import (
    IActionRepository,
    IAgentRepository,
    IEmbeddingProvider,
    IEncryptionService,
    IHttpTransport,
    IKnowledgeBaseRepository,
    ILLMProvider,
    ISecretStore,
    IVectorIndex,
)

__all__ = [
    # Entities
    "Action",
    "ActionVariable",
    "Agent",
    "AuthEntry",
    "AuthLocation",
    "ChatResult",
    "EmbeddingResult",
    "ExecutionResult",
    "Integration",
    "KnowledgeBase",
    "KnowledgeBaseStatus",
    "LLMProviderName",
    "LLMResponse",
    "Message",
    "MessageRole",
    "RequestEcho",
    "SearchResult",
    "Secret",
    "TokenUsage",
    "ToolCall",
    "VariableType",
    "VectorChunk",
    "VectorItem",
    "VectorMatch",
    "agent_id_from_namespace",
    "namespace_for_agent",
    # Ports
    "IActionRepository",
    "IAgentRepository",
    "IEmbeddingProvider",
    "IEncryptionService",
    "IHttpTransport",
    "IKnowledgeBaseRepository",
    "ILLMProvider",
    "ISecretStore",
    "IVectorIndex",
]
