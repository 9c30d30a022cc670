"""Web Push fan-out to every device subscribed by a set of users."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from uuid import UUID

from pywebpush import WebPushException, webpush

from app.core.config import Settings
from app.exceptions.push import ConfigurationError, DeliveryError
from app.schemas.push import DeliveryResult, PushMessage
from app.services.subscription_store import SubscriptionStore
from models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VapidCredentials:
    """VAPID key pair and subject used to sign every delivery."""

    public_key: str
    private_key: str
    subject: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "VapidCredentials":
        """Build credentials from settings.

        Raises:
            ConfigurationError: If any of the three values is missing
        """
        values = {
            "VAPID_PUBLIC_KEY": settings.vapid_public_key,
            "VAPID_PRIVATE_KEY": settings.vapid_private_key,
            "VAPID_SUBJECT": settings.vapid_subject,
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ConfigurationError(f"Server Configuration Error: missing {', '.join(missing)}")
        return cls(
            public_key=settings.vapid_public_key,
            private_key=settings.vapid_private_key,
            subject=settings.vapid_subject,
        )

    def claims(self) -> dict[str, str]:
        # pywebpush adds aud/exp to the dict it is given, so hand out a fresh one.
        return {"sub": self.subject}


class PushSender(Protocol):
    async def send(self, subscription: PushSubscription, payload: str) -> None:
        """Deliver ``payload`` to one subscription or raise DeliveryError."""


class WebPushSender:
    """Encrypts and posts a payload with pywebpush (aes128gcm, VAPID-signed).

    pywebpush is blocking, so each call runs in a worker thread and many
    deliveries can be in flight at once.
    """

    def __init__(self, credentials: VapidCredentials, ttl: int = 86400, timeout: float | None = 10.0):
        self.credentials = credentials
        self.ttl = ttl
        self.timeout = timeout

    async def send(self, subscription: PushSubscription, payload: str) -> None:
        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription.to_subscription_info(),
                data=payload,
                vapid_private_key=self.credentials.private_key,
                vapid_claims=self.credentials.claims(),
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as e:
            response = e.response
            status_code = response.status_code if response is not None else None
            raise DeliveryError(getattr(e, "message", None) or str(e), status_code) from e


class DeliveryOutcome(str, Enum):
    SENT = "sent"
    GONE = "gone"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryAttempt:
    subscription_id: UUID
    outcome: DeliveryOutcome
    error: str | None = None


class PushDispatcher:
    """Delivers one message to all subscriptions of the given users.

    Deliveries are issued concurrently and joined before returning. Failures
    are never raised: a 404/410 from the push service removes the
    subscription, anything else lands in ``DeliveryResult.errors`` and the
    subscription is kept.
    """

    def __init__(self, store: SubscriptionStore, sender: PushSender):
        self.store = store
        self.sender = sender

    async def dispatch(self, user_ids: Iterable[UUID], message: PushMessage) -> DeliveryResult:
        recipients = set(user_ids)
        if not recipients:
            return DeliveryResult()

        subscriptions = _unique(await self.store.list_for_users(recipients))
        if not subscriptions:
            logger.info(f"No push subscriptions for {len(recipients)} recipient(s)")
            return DeliveryResult()

        payload = message.to_payload()
        attempts = await asyncio.gather(
            *(self._deliver(subscription, payload) for subscription in subscriptions)
        )

        result = DeliveryResult()
        gone: list[UUID] = []
        for attempt in attempts:
            if attempt.outcome == DeliveryOutcome.SENT:
                result.sent += 1
            elif attempt.outcome == DeliveryOutcome.GONE:
                gone.append(attempt.subscription_id)
            else:
                result.errors.append(attempt.error)

        if gone:
            deleted = await self.store.delete_by_ids(gone)
            result.removed = len(gone)
            logger.info(f"🧹 Removed {deleted} expired push subscription(s)")

        logger.info(
            f"📨 Push dispatch complete: {result.sent} sent, "
            f"{result.removed} removed, {len(result.errors)} failed"
        )
        return result

    async def _deliver(self, subscription: PushSubscription, payload: str) -> DeliveryAttempt:
        try:
            await self.sender.send(subscription, payload)
        except DeliveryError as e:
            if e.is_gone:
                logger.info(f"Subscription {subscription.id} is gone (HTTP {e.status_code})")
                return DeliveryAttempt(subscription.id, DeliveryOutcome.GONE)
            logger.error(f"❌ Error sending push to {subscription.id}: {e.message}")
            return DeliveryAttempt(subscription.id, DeliveryOutcome.FAILED, e.message)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"❌ Error sending push to {subscription.id}: {message}")
            return DeliveryAttempt(subscription.id, DeliveryOutcome.FAILED, message)

        return DeliveryAttempt(subscription.id, DeliveryOutcome.SENT)


def _unique(subscriptions: list[PushSubscription]) -> list[PushSubscription]:
    seen: set[UUID] = set()
    unique = []
    for subscription in subscriptions:
        if subscription.id not in seen:
            seen.add(subscription.id)
            unique.append(subscription)
    return unique
