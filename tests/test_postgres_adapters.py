"""
Tests for the PostgreSQL repository adapters.

Tests cover:
- Row mapping for actions, integrations, agents and secrets
- Knowledge-base status transitions and the processing claim
- Chunk replacement inside a transaction
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.agentbuilder.adapters import (
    PostgresActionRepository,
    PostgresAgentRepository,
    PostgresKnowledgeBaseRepository,
    PostgresSecretStore,
)
from src.agentbuilder.domain.entities import (
    AuthLocation,
    KnowledgeBaseStatus,
    VariableType,
    VectorChunk,
)


# ============================================
# Helpers
# ============================================


class AsyncContextManager:
    """Helper class to create async context managers for mocking."""

    def __init__(self, return_value):
        self.return_value = return_value

    async def __aenter__(self):
        return self.return_value

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


@pytest.fixture
def mock_conn():
    conn = AsyncMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchval = AsyncMock(return_value=None)
    conn.execute = AsyncMock()
    conn.executemany = AsyncMock()
    return conn


@pytest.fixture
def mock_pool(mock_conn):
    pool = MagicMock()
    pool.acquire = MagicMock(return_value=AsyncContextManager(mock_conn))
    return pool


def action_row(**overrides):
    row = {
        "id": "act-1",
        "name": "getWeather",
        "descriptionForLlm": "Get current weather",
        "integrationId": "int-1",
        "executionMode": "sync",
        "variables": json.dumps([{"name": "city", "type": "string", "description": "City"}]),
        "bodyTemplate": None,
        "urlTemplate": None,
        "queryTemplate": {"q": "{{city}}"},
        "i_id": "int-1",
        "i_name": "weather-api",
        "i_description": None,
        "i_method": "get",
        "i_url": "https://api.example.com/weather",
        "i_auth_enabled": True,
        "i_auth_config": [{"type": "query", "key": "appid", "value": "{{WEATHER_KEY}}", "secret": True}],
        "i_default_headers": None,
        "i_default_params": {"units": "metric"},
    }
    row.update(overrides)
    return row


# ============================================
# Actions, agents, secrets
# ============================================


class TestPostgresActionRepository:
    @pytest.mark.asyncio
    async def test_maps_joined_row(self, mock_pool, mock_conn):
        mock_conn.fetchrow.return_value = action_row()

        action = await PostgresActionRepository(mock_pool).get_with_integration("act-1")

        assert action.name == "getWeather"
        assert action.description == "Get current weather"
        assert action.variables[0].type == VariableType.STRING
        assert action.query_template == {"q": "{{city}}"}
        assert action.integration.method == "GET"
        assert action.integration.auth_enabled is True
        assert action.integration.auth_config[0].type == AuthLocation.QUERY
        assert action.integration.default_headers == {}
        assert action.integration.default_params == {"units": "metric"}

    @pytest.mark.asyncio
    async def test_missing(self, mock_pool):
        assert await PostgresActionRepository(mock_pool).get_with_integration("nope") is None


class TestPostgresAgentRepository:
    @pytest.mark.asyncio
    async def test_get(self, mock_pool, mock_conn):
        mock_conn.fetchrow.return_value = {
            "id": "a1",
            "name": "Weather Bot",
            "systemPrompt": "Be brief.",
            "llmProvider": "openai",
            "llmModel": "gpt-4o-mini",
            "apiKeyEncrypted": "enc",
            "createdAt": None,
        }

        agent = await PostgresAgentRepository(mock_pool).get("a1")

        assert agent.system_prompt == "Be brief."
        assert agent.namespace == "agent-a1"

    @pytest.mark.asyncio
    async def test_enabled_actions_only(self, mock_pool, mock_conn):
        mock_conn.fetch.return_value = [action_row()]

        actions = await PostgresAgentRepository(mock_pool).list_enabled_actions("a1")

        assert [a.name for a in actions] == ["getWeather"]
        query = mock_conn.fetch.call_args.args[0]
        assert "aa.enabled = true" in query


class TestPostgresSecretStore:
    @pytest.mark.asyncio
    async def test_get_by_name(self, mock_pool, mock_conn):
        mock_conn.fetchrow.return_value = {
            "id": "s1",
            "name": "WEATHER_KEY",
            "encryptedValue": "cipher",
            "description": None,
        }

        secret = await PostgresSecretStore(mock_pool).get_by_name("WEATHER_KEY")

        assert secret.encrypted_value == "cipher"
        assert mock_conn.fetchrow.call_args.args[1] == "WEATHER_KEY"

    @pytest.mark.asyncio
    async def test_missing(self, mock_pool):
        assert await PostgresSecretStore(mock_pool).get_by_name("NOPE") is None


# ============================================
# Knowledge bases
# ============================================


class TestPostgresKnowledgeBaseRepository:
    @pytest.mark.asyncio
    async def test_get(self, mock_pool, mock_conn):
        mock_conn.fetchrow.return_value = {
            "id": "kb1",
            "agentId": "a1",
            "fileName": "faq.txt",
            "fileType": "txt",
            "filePath": "/uploads/faq.txt",
            "fileSize": 12,
            "status": "indexed",
            "chunkCount": 3,
            "embeddingProvider": "openai",
            "embeddingModel": "text-embedding-3-small",
        }

        kb = await PostgresKnowledgeBaseRepository(mock_pool).get("kb1")

        assert kb.status == KnowledgeBaseStatus.INDEXED
        assert kb.chunk_count == 3

    @pytest.mark.asyncio
    async def test_claim_succeeds_once(self, mock_pool, mock_conn):
        repo = PostgresKnowledgeBaseRepository(mock_pool)
        mock_conn.fetchval.side_effect = ["kb1", None]

        assert await repo.claim_for_processing("kb1") is True
        assert await repo.claim_for_processing("kb1") is False
        assert mock_conn.fetchval.call_args.args[1:] == ("kb1", "processing")

    @pytest.mark.asyncio
    async def test_mark_indexed(self, mock_pool, mock_conn):
        await PostgresKnowledgeBaseRepository(mock_pool).mark_indexed(
            "kb1", 4, embedding_provider="google", embedding_model="embedding-001"
        )

        assert mock_conn.execute.call_args.args[1:] == ("kb1", "indexed", 4, "google", "embedding-001")

    @pytest.mark.asyncio
    async def test_mark_failed(self, mock_pool, mock_conn):
        await PostgresKnowledgeBaseRepository(mock_pool).mark_failed("kb1")

        assert mock_conn.execute.call_args.args[1:] == ("kb1", "failed")

    @pytest.mark.asyncio
    async def test_replace_chunks_in_transaction(self):
        transaction = MagicMock()
        transaction.start = AsyncMock()
        transaction.commit = AsyncMock()
        transaction.rollback = AsyncMock()
        conn = MagicMock()
        conn.transaction = MagicMock(return_value=transaction)
        conn.execute = AsyncMock()
        conn.executemany = AsyncMock()
        pool = MagicMock()
        pool.acquire = AsyncMock(return_value=conn)
        pool.release = AsyncMock()

        chunk = VectorChunk("kb1", 0, "text", "kb1-chunk-0", embedding=[0.1], metadata={"chunkIndex": 0})
        await PostgresKnowledgeBaseRepository(pool).replace_chunks("kb1", [chunk])

        assert conn.execute.call_args.args[1] == "kb1"
        records = conn.executemany.call_args.args[1]
        assert records == [(chunk.id, "kb1", 0, "text", "kb1-chunk-0", {"chunkIndex": 0}, [0.1])]
        transaction.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_chunks_by_vector_ids(self, mock_pool, mock_conn):
        mock_conn.fetch.return_value = [{
            "id": "c1",
            "knowledgeBaseId": "kb1",
            "chunkIndex": 0,
            "text": "hello",
            "vectorId": "kb1-chunk-0",
            "metadata": '{"fileName": "faq.txt"}',
        }]

        chunks = await PostgresKnowledgeBaseRepository(mock_pool).get_chunks_by_vector_ids(["kb1-chunk-0"])

        assert chunks[0].text == "hello"
        assert chunks[0].metadata == {"fileName": "faq.txt"}

    @pytest.mark.asyncio
    async def test_chunks_by_no_ids(self, mock_pool, mock_conn):
        assert await PostgresKnowledgeBaseRepository(mock_pool).get_chunks_by_vector_ids([]) == []
        mock_conn.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_vector_ids(self, mock_pool, mock_conn):
        mock_conn.fetch.return_value = [{"vectorId": "kb1-chunk-0"}, {"vectorId": "kb1-chunk-1"}]

        assert await PostgresKnowledgeBaseRepository(mock_pool).list_vector_ids("kb1") == [
            "kb1-chunk-0",
            "kb1-chunk-1",
        ]
