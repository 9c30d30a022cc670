"""Push notification Pydantic schemas for request/response validation."""

import json
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from models.user import UserRole

from .base import BaseSchema


def _parse_role(value):
    if value is None or isinstance(value, UserRole):
        return value
    role = UserRole.parse(value) if isinstance(value, str) else None
    if role is None:
        raise ValueError("Role must be 'admin' or 'technician'")
    return role


class NotificationTarget(BaseSchema):
    """Exactly one of an explicit user or a role."""

    user_id: UUID | None = None
    role: UserRole | None = None

    @model_validator(mode="after")
    def validate_exactly_one(self):
        if (self.user_id is None) == (self.role is None):
            raise ValueError("Exactly one of user_id or role is required")
        return self

    @classmethod
    def for_user(cls, user_id: UUID) -> "NotificationTarget":
        return cls(user_id=user_id)

    @classmethod
    def for_role(cls, role: UserRole) -> "NotificationTarget":
        return cls(role=role)

    def describe(self) -> str:
        return f"user {self.user_id}" if self.user_id else f"role {self.role.value}"


class PushMessage(BaseSchema):
    """Notification content delivered to the device's service worker."""

    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    url: str = "/"

    def to_payload(self) -> str:
        """Serialize to the fixed JSON shape the service worker parses."""
        return json.dumps(
            {"title": self.title, "body": self.body, "url": self.url or "/"},
            ensure_ascii=False,
        )


class NotifyRequest(BaseSchema):
    """Schema for a direct notify request."""

    target_user_id: UUID | None = Field(None, alias="targetUserId")
    target_role: UserRole | None = Field(None, alias="targetRole")
    title: str = Field(..., description="Notification title")
    body: str = Field(..., description="Notification body")
    url: str | None = Field(None, description="Link opened when the notification is clicked")

    @field_validator("target_role", mode="before")
    @classmethod
    def validate_target_role(cls, v):
        return _parse_role(v)

    @field_validator("title", "body")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title and body cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_target(self):
        if self.target_user_id is None and self.target_role is None:
            raise ValueError("targetUserId or targetRole is required")
        if self.target_user_id is not None and self.target_role is not None:
            raise ValueError("Only one of targetUserId or targetRole may be given")
        return self

    @property
    def target(self) -> NotificationTarget:
        return NotificationTarget(user_id=self.target_user_id, role=self.target_role)

    @property
    def message(self) -> PushMessage:
        return PushMessage(title=self.title, body=self.body, url=self.url or "/")


class DeliveryResult(BaseSchema):
    """Aggregate outcome of one dispatch."""

    sent: int = 0
    removed: int = 0
    errors: list[str] = Field(default_factory=list)


class NotifyResponse(BaseSchema):
    """Schema for the notify response; errors are omitted when empty."""

    ok: bool = True
    sent: int
    removed: int
    errors: list[str] | None = None

    @classmethod
    def from_result(cls, result: DeliveryResult) -> "NotifyResponse":
        return cls(sent=result.sent, removed=result.removed, errors=result.errors or None)


class SubscriptionKeys(BaseSchema):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class SubscriptionInfo(BaseSchema):
    """Browser PushSubscription JSON."""

    endpoint: str = Field(..., min_length=1)
    keys: SubscriptionKeys


class SubscribeRequest(BaseSchema):
    """Schema for registering a device subscription."""

    user_id: UUID = Field(..., alias="userId")
    subscription: SubscriptionInfo


class UnsubscribeRequest(BaseSchema):
    endpoint: str = Field(..., min_length=1)


class SubscribeResponse(BaseSchema):
    ok: bool = True


class UnsubscribeResponse(BaseSchema):
    ok: bool = True
    removed: int = 0


class VapidPublicKeyResponse(BaseSchema):
    public_key: str = Field(..., alias="publicKey")


__all__ = [
    "NotificationTarget",
    "PushMessage",
    "NotifyRequest",
    "NotifyResponse",
    "DeliveryResult",
    "SubscriptionKeys",
    "SubscriptionInfo",
    "SubscribeRequest",
    "UnsubscribeRequest",
    "SubscribeResponse",
    "UnsubscribeResponse",
    "VapidPublicKeyResponse",
]
