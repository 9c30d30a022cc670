# app/domains/push/service.py
import logging
from collections.abc import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.push import AuthorizationError
from app.schemas.push import DeliveryResult, NotifyRequest, SubscribeRequest
from app.services.authorization import AuthorizationGate
from app.services.directory import DirectoryResolver
from app.services.push_dispatcher import PushDispatcher, PushSender
from app.services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)


class PushNotificationService:
    """Caller-initiated notifications and device subscription management."""

    def __init__(self, db: AsyncSession, sender_factory: Callable[[], PushSender] | None = None):
        self.db = db
        self.directory = DirectoryResolver(db)
        self.gate = AuthorizationGate(self.directory)
        self.store = SubscriptionStore(db)
        self.sender_factory = sender_factory

    async def notify(self, caller_id: UUID, request: NotifyRequest) -> DeliveryResult:
        """Authorize, resolve the target and dispatch the message."""
        target = request.target
        await self.gate.ensure_allowed(caller_id, target)

        dispatcher = PushDispatcher(self.store, self.sender_factory())
        user_ids = await self.directory.resolve(target)

        logger.info(f"Caller {caller_id} notifying {target.describe()} ({len(user_ids)} user(s))")
        return await dispatcher.dispatch(user_ids, request.message)

    async def subscribe(
        self, caller_id: UUID, request: SubscribeRequest, user_agent: str | None = None
    ) -> None:
        """Register the caller's device; the body must name the caller."""
        if request.user_id != caller_id:
            raise AuthorizationError("cannot register a subscription for another user")

        await self.store.upsert(
            user_id=caller_id,
            endpoint=request.subscription.endpoint,
            p256dh=request.subscription.keys.p256dh,
            auth=request.subscription.keys.auth,
            user_agent=user_agent,
        )

    async def unsubscribe(self, caller_id: UUID, endpoint: str) -> int:
        removed = await self.store.delete_for_user(caller_id, endpoint)
        logger.info(f"Caller {caller_id} unsubscribed ({removed} removed)")
        return removed
