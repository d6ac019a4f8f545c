"""
Tests for template rendering and {{SECRET}} resolution.

Tests cover:
- Mustache rendering of URLs and bodies
- Secret store lookup with decryption
- Environment variable fallback
- Missing secret error
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.agentbuilder.actions.templates import SECRET_REFERENCE, TemplateResolver
from src.agentbuilder.domain.entities import Secret
from src.agentbuilder.exceptions import SecretNotFoundError


# ============================================
# Fixtures
# ============================================


@pytest.fixture
def secret_store():
    store = MagicMock()
    store.get_by_name = AsyncMock(return_value=None)
    return store


@pytest.fixture
def encryption():
    service = MagicMock()
    service.decrypt = MagicMock(side_effect=lambda value: f"plain:{value}")
    return service


@pytest.fixture
def resolver(secret_store, encryption):
    return TemplateResolver(secret_store, encryption, environ={})


# ============================================
# Rendering
# ============================================


class TestRender:
    def test_substitutes_inputs(self, resolver):
        url = resolver.render("https://api.example.com/weather?city={{city}}", {"city": "Paris"})
        assert url == "https://api.example.com/weather?city=Paris"

    def test_missing_key_renders_empty(self, resolver):
        assert resolver.render("/items/{{id}}", {}) == "/items/"

    def test_numbers_are_stringified(self, resolver):
        assert resolver.render('{"qty": {{qty}} }', {"qty": 3}) == '{"qty": 3 }'


class TestSecretReference:
    @pytest.mark.parametrize("value", ["{{WEATHER_KEY}}", "{{A}}", "{{_X_}}"])
    def test_matches_exact_upper_snake(self, value):
        assert SECRET_REFERENCE.match(value)

    @pytest.mark.parametrize(
        "value",
        ["{{city}}", "Bearer {{TOKEN}}", "{{TOKEN}} ", "{{TOKEN_1}}", "TOKEN"],
    )
    def test_rejects_everything_else(self, value):
        assert SECRET_REFERENCE.match(value) is None


# ============================================
# Resolution
# ============================================


class TestResolveValue:
    @pytest.mark.asyncio
    async def test_plain_template_is_rendered(self, resolver, secret_store):
        value = await resolver.resolve_value("Bearer {{token}}", {"token": "abc"})

        assert value == "Bearer abc"
        secret_store.get_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_secret_store_wins_over_environment(self, secret_store, encryption):
        secret_store.get_by_name.return_value = Secret(
            id="s1", name="WEATHER_KEY", encrypted_value="cipher"
        )
        resolver = TemplateResolver(secret_store, encryption, environ={"WEATHER_KEY": "from-env"})

        value = await resolver.resolve_value("{{WEATHER_KEY}}", {})

        assert value == "plain:cipher"
        secret_store.get_by_name.assert_awaited_once_with("WEATHER_KEY")
        encryption.decrypt.assert_called_once_with("cipher")

    @pytest.mark.asyncio
    async def test_falls_back_to_environment(self, secret_store, encryption):
        resolver = TemplateResolver(secret_store, encryption, environ={"WEATHER_KEY": "k-123"})

        assert await resolver.resolve_value("{{WEATHER_KEY}}", {}) == "k-123"
        encryption.decrypt.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_environment_value_is_ignored(self, secret_store, encryption):
        resolver = TemplateResolver(secret_store, encryption, environ={"WEATHER_KEY": ""})

        with pytest.raises(SecretNotFoundError):
            await resolver.resolve_value("{{WEATHER_KEY}}", {})

    @pytest.mark.asyncio
    async def test_missing_secret_raises(self, resolver):
        with pytest.raises(SecretNotFoundError) as exc_info:
            await resolver.resolve_value("{{MISSING_KEY}}", {})

        assert str(exc_info.value) == "Secret not found: MISSING_KEY"
        assert exc_info.value.secret_name == "MISSING_KEY"

    @pytest.mark.asyncio
    async def test_secret_is_looked_up_every_call(self, resolver, secret_store):
        secret_store.get_by_name.return_value = Secret(id="s1", name="KEY", encrypted_value="c")

        await resolver.resolve_value("{{KEY}}", {})
        await resolver.resolve_value("{{KEY}}", {})

        assert secret_store.get_by_name.await_count == 2
