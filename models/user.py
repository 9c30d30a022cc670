"""
Provides the directory User model shared with the managed backend.

The ``usuarios`` table is owned by the backend's auth/profile layer; this
service only reads it to resolve notification targets and to check the
role of the caller. Roles are stored as plain strings so that a row with an
unexpected value can still be loaded and then rejected by the authorization
rules instead of failing at the ORM layer.

Attributes
----------
email : sqlalchemy.Column
    The email address of the user.
nombre : sqlalchemy.Column
    Display name.
rol : sqlalchemy.Column
    Stored role string (``admin`` or ``tecnico``).
telefono : sqlalchemy.Column
    Optional contact phone.

Relationships
-------------
push_subscriptions : sqlalchemy.orm.relationship
    One-to-many relationship with the `PushSubscription` model. Supports
    cascading deletes for related objects.
"""

import enum

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class UserRole(str, enum.Enum):
    """Directory role enumeration.

    The technician variant keeps the spelling stored by the backend.
    """

    ADMIN = "admin"
    TECHNICIAN = "tecnico"

    @classmethod
    def parse(cls, value: str | None) -> "UserRole | None":
        """Map an API or stored role string to a role, or None when unrecognized."""
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized == "technician":
            return cls.TECHNICIAN
        try:
            return cls(normalized)
        except ValueError:
            return None


class User(BaseModel):
    """
    Represents a directory entry (admin or technician).

    :ivar email: Email address of the user.
    :type email: str
    :ivar nombre: Display name of the user.
    :type nombre: str
    :ivar rol: Stored role string.
    :type rol: str
    :ivar telefono: Optional phone number.
    :type telefono: str
    """

    __tablename__ = "usuarios"

    email = Column(String(255), nullable=False, unique=True)
    nombre = Column(String(255))
    rol = Column(String(50), nullable=False, index=True)
    telefono = Column(String(50))

    push_subscriptions = relationship(
        "PushSubscription", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def role(self) -> UserRole | None:
        return UserRole.parse(self.rol)
