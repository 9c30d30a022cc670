"""Database change-capture webhook controller."""

import logging
from collections.abc import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.dependencies import get_push_sender_factory, verify_webhook_secret
from app.database import get_db
from app.domains.push.controller import health_payload
from app.domains.webhook.service import ClaimWebhookService
from app.schemas.base import HealthResponse
from app.schemas.webhook import ChangeEvent, WebhookResponse
from app.services.push_dispatcher import PushSender

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/push", tags=["Webhooks"])


@router.get("/webhook", response_model=HealthResponse)
async def webhook_health(settings: Settings = Depends(get_settings)):
    """Liveness check for the webhook endpoint."""
    return health_payload("push-webhook", settings)


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_webhook_secret)],
)
async def handle_change_event(
    event: ChangeEvent,
    db: AsyncSession = Depends(get_db),
    sender_factory: Callable[[], PushSender] = Depends(get_push_sender_factory),
    settings: Settings = Depends(get_settings),
):
    """Receive a row change and notify admins/technicians about claim events.

    Requires the ``X-Webhook-Secret`` header. Events for other tables are
    acknowledged without notifying anyone.
    """
    service = ClaimWebhookService(db, sender_factory, settings)
    return await service.handle(event)
