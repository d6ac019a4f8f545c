"""Agent builder: tool-calling chat orchestration, action execution and
per-agent knowledge-base retrieval."""

__version__ = "0.1.0"
