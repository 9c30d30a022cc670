"""Security related functions."""

import hmac
import logging
from uuid import UUID

import httpx
import jwt
from jwt import InvalidTokenError

from app.core.config import Settings
from app.exceptions.push import ConfigurationError

logger = logging.getLogger(__name__)


class SupabaseAuthenticator:
    """
    Resolves a caller's bearer token to a user identifier.

    When a JWT secret is configured the access token is verified locally;
    otherwise it is exchanged with the backend's auth API using the restricted
    (anon) key. Either way the result is the user id or ``None`` when the
    token is not acceptable.

    :ivar supabase_url: The base URL of the backend.
    :type supabase_url: str
    :ivar anon_key: Restricted API key used for identity lookups.
    :type anon_key: str
    :ivar jwt_secret: Secret used to verify access tokens locally.
    :type jwt_secret: str
    """

    audience = "authenticated"

    def __init__(self, settings: Settings):
        self.supabase_url = (settings.supabase_url or "").rstrip("/")
        self.anon_key = settings.supabase_anon_key
        self.jwt_secret = settings.supabase_jwt_secret
        self.timeout = settings.auth_request_timeout

    async def get_user_id(self, token: str) -> UUID | None:
        """Return the id of the user owning ``token``, or None if it is invalid."""
        if self.jwt_secret:
            return self._verify_locally(token)
        if self.supabase_url and self.anon_key:
            return await self._fetch_user_id(token)
        raise ConfigurationError("Caller identity resolution is not configured")

    def _verify_locally(self, token: str) -> UUID | None:
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=self.audience,
            )
        except InvalidTokenError as e:
            logger.info(f"Rejected access token: {str(e)}")
            return None
        return _as_uuid(payload.get("sub"))

    async def _fetch_user_id(self, token: str) -> UUID | None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                f"{self.supabase_url}/auth/v1/user",
                headers={"apikey": self.anon_key, "Authorization": f"Bearer {token}"},
            )
        if response.status_code != 200:
            logger.info(f"Auth API rejected access token (HTTP {response.status_code})")
            return None
        return _as_uuid(response.json().get("id"))


def _as_uuid(value) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def secrets_match(provided: str | None, expected: str) -> bool:
    """Compare a provided secret with the configured one in constant time."""
    if provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
