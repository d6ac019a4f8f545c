"""Exception hierarchy for the agent builder.

All errors raised by this package inherit from AgentBuilderError, so callers
can catch everything package-specific with a single except clause.

Exception Hierarchy:
    AgentBuilderError (base)
    ├── ConfigurationError (unrecoverable - fix config)
    │   ├── SecretNotFoundError
    │   ├── UnsupportedProviderError
    │   └── DecryptionError
    ├── InputValidationError (caller supplied bad action inputs)
    ├── APIError (upstream HTTP status >= 400)
    │   └── ServerError (5xx, retryable)
    ├── NetworkError (recoverable - retry)
    │   ├── ConnectionError
    │   └── TimeoutError
    ├── DatabaseError
    │   ├── ConnectionPoolError
    │   ├── TransactionError
    │   └── IntegrityError
    ├── NotFoundError
    │   ├── AgentNotFoundError
    │   └── KnowledgeBaseNotFoundError
    └── KnowledgeBaseError
        ├── IngestionInProgressError
        └── UnsupportedFileTypeError
"""
from datetime import datetime
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================


class AgentBuilderError(Exception):
    """Base exception for all agent builder errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "SECRET_NOT_FOUND")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether this error might be recoverable with retry
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.utcnow()
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration Errors (Unrecoverable)
# ============================================


class ConfigurationError(AgentBuilderError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        kwargs.setdefault("code", "CONFIGURATION_ERROR")
        super().__init__(message, details=details, recoverable=False, **kwargs)
        self.missing_keys = missing_keys or []


class SecretNotFoundError(ConfigurationError):
    """Raised when a {{SECRET}} reference matches neither a stored secret nor an env var."""

    def __init__(self, secret_name: str, **kwargs):
        super().__init__(
            f"Secret not found: {secret_name}",
            code="SECRET_NOT_FOUND",
            details={"secret_name": secret_name},
            **kwargs,
        )
        self.secret_name = secret_name


class UnsupportedProviderError(ConfigurationError):
    """Raised when an agent names an LLM or embedding vendor we do not ship."""

    def __init__(self, provider: str, kind: str = "LLM", **kwargs):
        super().__init__(
            f"Unsupported {kind} provider: {provider}",
            code="UNSUPPORTED_PROVIDER",
            details={"provider": provider, "kind": kind},
            **kwargs,
        )
        self.provider = provider


class DecryptionError(ConfigurationError):
    """Raised when a ciphertext is malformed or was sealed with another key."""

    def __init__(self, message: str = "Decryption failed", **kwargs):
        kwargs.setdefault("code", "DECRYPTION_FAILED")
        super().__init__(message, **kwargs)


# ============================================
# Input Validation
# ============================================


class InputValidationError(AgentBuilderError):
    """Raised when action inputs do not satisfy the declared variables."""

    def __init__(self, message: str, variable: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if variable:
            details["variable"] = variable
        super().__init__(
            message,
            code="INPUT_VALIDATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.variable = variable


# ============================================
# API Errors
# ============================================


class APIError(AgentBuilderError):
    """Raised when an upstream endpoint answers with status >= 400.

    Attributes:
        status_code: HTTP status code
        endpoint: URL that was called
        response_body: Raw response body (may be truncated)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        endpoint: Optional[str] = None,
        response_body: Optional[str] = None,
        method: str = "GET",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        if endpoint:
            details["endpoint"] = endpoint
        if method:
            details["method"] = method
        if response_body:
            details["response_body"] = response_body[:500] if len(response_body) > 500 else response_body

        kwargs.setdefault("recoverable", status_code >= 500)
        kwargs.setdefault("code", f"API_ERROR_{status_code}")

        super().__init__(message, details=details, **kwargs)
        self.status_code = status_code
        self.endpoint = endpoint
        self.response_body = response_body
        self.method = method


class ServerError(APIError):
    """Raised when the upstream returns a 5xx error."""

    def __init__(self, message: str = "Server error", **kwargs):
        kwargs.setdefault("status_code", 500)
        super().__init__(
            message,
            code="SERVER_ERROR",
            recoverable=True,
            **kwargs,
        )


# ============================================
# Network Errors (Usually Recoverable)
# ============================================


class NetworkError(AgentBuilderError):
    """Base class for network-related errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class ConnectionError(NetworkError):
    """Raised when connection to the upstream fails."""

    def __init__(
        self,
        message: str = "Failed to connect to server",
        host: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if host:
            details["host"] = host
        super().__init__(message, code="CONNECTION_ERROR", details=details, **kwargs)


class TimeoutError(NetworkError):
    """Raised when a request times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, code="TIMEOUT_ERROR", details=details, **kwargs)


# ============================================
# Database Errors
# ============================================


class DatabaseError(AgentBuilderError):
    """Base class for database-related errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "DATABASE_ERROR")
        super().__init__(message, **kwargs)


class ConnectionPoolError(DatabaseError):
    """Raised when the connection pool is unavailable or exhausted."""

    def __init__(self, message: str = "Database connection pool error", **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, code="CONNECTION_POOL_ERROR", **kwargs)


class TransactionError(DatabaseError):
    """Raised when a transaction fails to start, commit or complete."""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        super().__init__(message, code="TRANSACTION_ERROR", details=details, **kwargs)


class IntegrityError(DatabaseError):
    """Raised when a constraint (unique, foreign key, not null) is violated."""

    def __init__(self, message: str, constraint: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if constraint:
            details["constraint"] = constraint
        super().__init__(message, code="INTEGRITY_ERROR", details=details, **kwargs)


# ============================================
# Lookup Errors
# ============================================


class NotFoundError(AgentBuilderError):
    """Raised when a persisted record does not exist."""

    def __init__(self, resource_type: str, resource_id: Optional[str] = None, **kwargs):
        message = f"{resource_type} not found"
        details = kwargs.pop("details", {})
        details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id
        kwargs.setdefault("code", "NOT_FOUND")
        super().__init__(message, details=details, recoverable=False, **kwargs)
        self.resource_id = resource_id


class AgentNotFoundError(NotFoundError):
    def __init__(self, agent_id: str, **kwargs):
        super().__init__("Agent", agent_id, code="AGENT_NOT_FOUND", **kwargs)


class KnowledgeBaseNotFoundError(NotFoundError):
    def __init__(self, kb_id: str, **kwargs):
        super().__init__("Knowledge base", kb_id, code="KNOWLEDGE_BASE_NOT_FOUND", **kwargs)


# ============================================
# Knowledge Base Errors
# ============================================


class KnowledgeBaseError(AgentBuilderError):
    """Base class for knowledge-base ingestion errors."""


class IngestionInProgressError(KnowledgeBaseError):
    """Raised when a build is requested for a KB that is already processing."""

    def __init__(self, kb_id: str, **kwargs):
        super().__init__(
            f"Knowledge base {kb_id} is already being processed",
            code="INGESTION_IN_PROGRESS",
            details={"kb_id": kb_id},
            recoverable=True,
            **kwargs,
        )
        self.kb_id = kb_id


class UnsupportedFileTypeError(KnowledgeBaseError):
    """Raised when a document type has no text extractor."""

    def __init__(self, file_type: str, **kwargs):
        super().__init__(
            f"Unsupported file type: {file_type}",
            code="UNSUPPORTED_FILE_TYPE",
            details={"file_type": file_type},
            **kwargs,
        )
        self.file_type = file_type
