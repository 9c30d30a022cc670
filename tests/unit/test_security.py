# ruff: noqa: SIM117
"""
Unit tests for caller identity resolution and secret comparison.
"""

import uuid
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.core.config import Settings
from app.core.security import SupabaseAuthenticator, secrets_match
from app.exceptions.push import ConfigurationError
from tests.factories import JWT_SECRET, make_access_token


class TestLocalVerification:
    """Tokens verified with the configured JWT secret."""

    @pytest.fixture
    def authenticator(self):
        return SupabaseAuthenticator(Settings(_env_file=None, supabase_jwt_secret=JWT_SECRET))

    @pytest.mark.asyncio
    async def test_valid_token(self, authenticator):
        user_id = uuid.uuid4()

        assert await authenticator.get_user_id(make_access_token(user_id)) == user_id

    @pytest.mark.asyncio
    async def test_wrong_signature(self, authenticator):
        token = make_access_token(uuid.uuid4(), secret="another-secret-that-is-long-enough-too")

        assert await authenticator.get_user_id(token) is None

    @pytest.mark.asyncio
    async def test_wrong_audience(self, authenticator):
        token = make_access_token(uuid.uuid4(), audience="anon")

        assert await authenticator.get_user_id(token) is None

    @pytest.mark.asyncio
    async def test_subject_not_a_uuid(self, authenticator):
        assert await authenticator.get_user_id(make_access_token("service-account")) is None


class TestRemoteVerification:
    """Tokens exchanged with the auth API using the restricted key."""

    @pytest.fixture
    def authenticator(self):
        return SupabaseAuthenticator(
            Settings(_env_file=None, supabase_url="https://project.supabase.co/", supabase_anon_key="anon-key")
        )

    @pytest.mark.asyncio
    async def test_accepted_token(self, authenticator):
        user_id = uuid.uuid4()
        http = AsyncMock()
        http.get.return_value = httpx.Response(200, json={"id": str(user_id), "email": "a@b.c"})

        with patch("app.core.security.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = http
            result = await authenticator.get_user_id("token-123")

        assert result == user_id
        http.get.assert_awaited_once_with(
            "https://project.supabase.co/auth/v1/user",
            headers={"apikey": "anon-key", "Authorization": "Bearer token-123"},
        )

    @pytest.mark.asyncio
    async def test_rejected_token(self, authenticator):
        http = AsyncMock()
        http.get.return_value = httpx.Response(401, json={"msg": "invalid JWT"})

        with patch("app.core.security.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = http
            assert await authenticator.get_user_id("bad") is None


class TestMisconfiguration:
    @pytest.mark.asyncio
    async def test_no_verification_configured(self):
        authenticator = SupabaseAuthenticator(Settings(_env_file=None))

        with pytest.raises(ConfigurationError):
            await authenticator.get_user_id("token")


class TestSecretsMatch:
    def test_match(self):
        assert secrets_match("s3cret", "s3cret") is True

    @pytest.mark.parametrize("provided", ["s3cre", "s3cret ", "", None])
    def test_mismatch(self, provided):
        assert secrets_match(provided, "s3cret") is False

    def test_non_ascii(self):
        assert secrets_match("contraseña", "contraseña") is True
