"""Push notification API controller."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.dependencies import get_caller_id, get_push_sender_factory
from app.database import get_db
from app.domains.push.service import PushNotificationService
from app.exceptions.push import ConfigurationError
from app.schemas.base import HealthResponse
from app.schemas.push import (
    NotifyRequest,
    NotifyResponse,
    SubscribeRequest,
    SubscribeResponse,
    UnsubscribeRequest,
    UnsubscribeResponse,
    VapidPublicKeyResponse,
)
from app.services.push_dispatcher import PushSender

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/push", tags=["Push Notifications"])


def health_payload(name: str, settings: Settings) -> HealthResponse:
    return HealthResponse(
        name=name,
        commit=settings.commit_short,
        time=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/notify", response_model=HealthResponse)
async def notify_health(settings: Settings = Depends(get_settings)):
    """Liveness check for the notify endpoint."""
    return health_payload("push-notify", settings)


@router.post("/notify", response_model=NotifyResponse, response_model_exclude_none=True)
async def notify(
    payload: NotifyRequest,
    caller_id: UUID = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
    sender_factory: Callable[[], PushSender] = Depends(get_push_sender_factory),
):
    """Send a push notification to a user or to every user with a role.

    Partial delivery failures are reported in ``errors``; they never fail
    the request.
    """
    service = PushNotificationService(db, sender_factory)
    result = await service.notify(caller_id, payload)
    return NotifyResponse.from_result(result)


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    payload: SubscribeRequest,
    caller_id: UUID = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
    user_agent: str | None = Header(default=None),
):
    """Register (or refresh) the caller's device subscription."""
    service = PushNotificationService(db)
    await service.subscribe(caller_id, payload, user_agent)
    return SubscribeResponse()


@router.post("/unsubscribe", response_model=UnsubscribeResponse)
async def unsubscribe(
    payload: UnsubscribeRequest,
    caller_id: UUID = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    """Remove the caller's subscription for an endpoint. Idempotent."""
    service = PushNotificationService(db)
    removed = await service.unsubscribe(caller_id, payload.endpoint)
    return UnsubscribeResponse(removed=removed)


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
async def get_vapid_public_key(settings: Settings = Depends(get_settings)):
    """Public application server key used by clients to subscribe."""
    if not settings.vapid_public_key:
        raise ConfigurationError("VAPID public key not configured")
    return VapidPublicKeyResponse(public_key=settings.vapid_public_key)
