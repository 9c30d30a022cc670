"""
Push Subscription model for storing web push notification subscriptions.

This module defines the PushSubscription model which manages device
subscriptions to web push notifications. A subscription is identified by
its endpoint: a device that subscribes again overwrites its previous row.
"""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class PushSubscription(BaseModel):
    """
    Represents a push notification subscription for a device.

    This class stores the subscription information needed to encrypt and
    deliver web push notifications to a browser's push service.

    :ivar user_id: Foreign key reference to the owning user.
    :type user_id: UUID
    :ivar endpoint: Push service endpoint URL, unique per device.
    :type endpoint: str
    :ivar p256dh: Client public key for payload encryption (base64url).
    :type p256dh: str
    :ivar auth: Authentication secret for the subscription (base64url).
    :type auth: str
    :ivar user_agent: Browser user agent string (optional).
    :type user_agent: str
    """

    __tablename__ = "push_subscriptions"

    user_id = Column(UUID(), ForeignKey("usuarios.id", ondelete="CASCADE"), nullable=False, index=True)

    # Push subscription details
    endpoint = Column(Text, nullable=False, unique=True)
    p256dh = Column(String(255), nullable=False)
    auth = Column(String(255), nullable=False)

    # Optional metadata
    user_agent = Column(String(500))

    # Relationship
    user = relationship("User", back_populates="push_subscriptions")

    def to_subscription_info(self) -> dict:
        """Return the subscription in the browser's PushSubscription JSON shape."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }
