"""
Models package initialization.
"""

from .base import Base, BaseModel
from .push_subscription import PushSubscription
from .user import User, UserRole

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserRole",
    "PushSubscription",
]
