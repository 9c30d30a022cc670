# app/core/dependencies.py
import logging
from collections.abc import Callable
from functools import partial
from uuid import UUID

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import Settings, get_settings
from app.core.security import SupabaseAuthenticator, secrets_match
from app.exceptions.push import AuthenticationError, ConfigurationError, WebhookSecretError
from app.services.push_dispatcher import PushSender, VapidCredentials, WebPushSender

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_authenticator(settings: Settings = Depends(get_settings)) -> SupabaseAuthenticator:
    return SupabaseAuthenticator(settings)


async def get_caller_id(
    request: Request,
    token: HTTPAuthorizationCredentials | None = Depends(security),
    auth: SupabaseAuthenticator = Depends(get_authenticator),
) -> UUID:
    """Resolve the bearer token to the caller's user id.

    Raises:
        AuthenticationError: If the token is missing or not accepted
    """
    if not token or not token.credentials:
        raise AuthenticationError("Authentication token is required")

    user_id = await auth.get_user_id(token.credentials)
    if not user_id:
        raise AuthenticationError("Invalid authentication token")

    request.state.user_id = user_id
    return user_id


def build_push_sender(settings: Settings) -> PushSender:
    """Build the Web Push sender; raises ConfigurationError when VAPID is not configured."""
    return WebPushSender(
        VapidCredentials.from_settings(settings),
        ttl=settings.push_ttl_seconds,
        timeout=settings.push_timeout_seconds,
    )


def get_push_sender_factory(settings: Settings = Depends(get_settings)) -> Callable[[], PushSender]:
    """Provide a deferred sender builder.

    Handlers call it once they know a delivery is needed, so requests that are
    rejected or ignored earlier do not depend on the VAPID configuration.
    """
    return partial(build_push_sender, settings)


async def verify_webhook_secret(
    x_webhook_secret: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Check the shared secret before the webhook body is looked at."""
    if not settings.webhook_secret:
        logger.error("[Webhook] WEBHOOK_SECRET not configured")
        raise ConfigurationError("Webhook secret not configured on server")

    if not x_webhook_secret:
        logger.warning("[Webhook] No secret provided in request")
        raise WebhookSecretError("Missing X-Webhook-Secret header")

    if not secrets_match(x_webhook_secret, settings.webhook_secret):
        logger.warning("[Webhook] Invalid secret provided")
        raise WebhookSecretError("Invalid webhook secret")
