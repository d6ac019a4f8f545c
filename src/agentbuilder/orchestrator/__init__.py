"""Chat orchestration."""

from .chat import ChatOrchestrator, ChatState, ChatTurn, format_tool_result

__all__ = ["ChatOrchestrator", "ChatState", "ChatTurn", "format_tool_result"]
