"""Runtime configuration read from environment variables.

The CLI calls ``load_dotenv()`` before building Settings, so a local
``.env`` file works the same as exported variables.

Environment Variables:
    - DATABASE_URL: PostgreSQL connection string (required)
    - ENCRYPTION_KEY: 64 hex characters (required)
    - VECTOR_BACKEND: "postgres" or "chroma" (default: chroma if CHROMA_HOST is set)
    - CHROMA_HOST / CHROMA_PORT: Chroma server (port default 8000)
    - DEFAULT_OPENAI_API_KEY: Embedding key used when an agent key is unusable
    - ACTION_TIMEOUT_SECONDS: Per-request action timeout (default 30)
    - ACTION_MAX_RETRIES: Extra attempts for 5xx responses (default 1)
    - KB_CHUNK_SIZE / KB_CHUNK_OVERLAP: Chunking window (default 1000 / 200)
    - LOG_LEVEL: Logging level (default INFO)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", cause=e)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", cause=e)


@dataclass
class Settings:
    database_url: Optional[str] = None
    encryption_key: Optional[str] = None
    vector_backend: str = "postgres"
    chroma_host: Optional[str] = None
    chroma_port: int = 8000
    default_openai_api_key: Optional[str] = None
    action_timeout_seconds: float = 30.0
    action_max_retries: int = 1
    kb_chunk_size: int = 1000
    kb_chunk_overlap: int = 200
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        chroma_host = os.getenv("CHROMA_HOST") or None
        backend = os.getenv("VECTOR_BACKEND") or ("chroma" if chroma_host else "postgres")

        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            encryption_key=os.getenv("ENCRYPTION_KEY") or None,
            vector_backend=backend.lower(),
            chroma_host=chroma_host,
            chroma_port=_int_env("CHROMA_PORT", 8000),
            default_openai_api_key=os.getenv("DEFAULT_OPENAI_API_KEY") or None,
            action_timeout_seconds=_float_env("ACTION_TIMEOUT_SECONDS", 30.0),
            action_max_retries=_int_env("ACTION_MAX_RETRIES", 1),
            kb_chunk_size=_int_env("KB_CHUNK_SIZE", 1000),
            kb_chunk_overlap=_int_env("KB_CHUNK_OVERLAP", 200),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )

    def validate(self) -> None:
        """Raise ConfigurationError if required settings are missing."""
        missing = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if not self.encryption_key:
            missing.append("ENCRYPTION_KEY")
        if self.vector_backend == "chroma" and not self.chroma_host:
            missing.append("CHROMA_HOST")

        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing_keys=missing,
            )

        if self.vector_backend not in ("postgres", "chroma"):
            raise ConfigurationError(
                f"VECTOR_BACKEND must be 'postgres' or 'chroma', got {self.vector_backend!r}"
            )
        if self.action_max_retries < 0:
            raise ConfigurationError("ACTION_MAX_RETRIES must be >= 0")
        if self.kb_chunk_overlap >= self.kb_chunk_size:
            raise ConfigurationError("KB_CHUNK_OVERLAP must be smaller than KB_CHUNK_SIZE")
