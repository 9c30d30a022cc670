"""Authorization rules for caller-initiated notifications."""

import logging
from dataclasses import dataclass
from uuid import UUID

from app.exceptions.push import AuthorizationError
from app.schemas.push import NotificationTarget
from app.services.directory import DirectoryResolver
from models.user import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "AuthorizationDecision":
        return cls(allowed=True)

    @classmethod
    def forbid(cls, reason: str) -> "AuthorizationDecision":
        return cls(allowed=False, reason=reason)


class AuthorizationGate:
    """Decides whether a caller may notify a target.

    Rules, first match wins:

    1. the caller must exist in the directory;
    2. only admins may notify the technician role;
    3. admins and technicians may notify the admin role;
    4. a specific user may be notified by an admin, or by that same user.

    A stored role outside :class:`UserRole` satisfies none of the role rules.
    """

    def __init__(self, directory: DirectoryResolver):
        self.directory = directory

    async def authorize(self, caller_id: UUID, target: NotificationTarget) -> AuthorizationDecision:
        caller = await self.directory.get_user(caller_id)
        if caller is None:
            return AuthorizationDecision.forbid("unknown caller")

        return self.decide(caller_id, caller.role, target)

    @staticmethod
    def decide(
        caller_id: UUID, caller_role: UserRole | None, target: NotificationTarget
    ) -> AuthorizationDecision:
        if target.role == UserRole.TECHNICIAN:
            if caller_role != UserRole.ADMIN:
                return AuthorizationDecision.forbid("only admin can notify technicians")
            return AuthorizationDecision.allow()

        if target.role == UserRole.ADMIN:
            if caller_role not in (UserRole.ADMIN, UserRole.TECHNICIAN):
                return AuthorizationDecision.forbid("only admin or technician can notify admins")
            return AuthorizationDecision.allow()

        if caller_role == UserRole.ADMIN or target.user_id == caller_id:
            return AuthorizationDecision.allow()
        return AuthorizationDecision.forbid("only admin can notify other users")

    async def ensure_allowed(self, caller_id: UUID, target: NotificationTarget) -> None:
        """Raise AuthorizationError with the reason when the caller is refused."""
        decision = await self.authorize(caller_id, target)
        if not decision.allowed:
            logger.warning(
                f"🚫 Caller {caller_id} may not notify {target.describe()}: {decision.reason}"
            )
            raise AuthorizationError(decision.reason)
