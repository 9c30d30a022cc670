"""Directory lookups: expand notification targets into user ids."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.push import NotificationTarget
from models.user import User, UserRole

logger = logging.getLogger(__name__)


class DirectoryResolver:
    """Reads the user directory to resolve targets and caller roles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: UUID) -> User | None:
        """Get a directory entry by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def user_ids_for_role(self, role: UserRole) -> set[UUID]:
        result = await self.db.execute(select(User.id).where(User.rol == role.value))
        user_ids = set(result.scalars().all())
        logger.debug(f"Found {len(user_ids)} users with role {role.value}")
        return user_ids

    async def resolve(self, target: NotificationTarget) -> set[UUID]:
        """Expand a target into the set of recipient user ids.

        An explicit user needs no lookup; a role may legitimately resolve to
        an empty set.
        """
        if target.user_id is not None:
            return {target.user_id}
        return await self.user_ids_for_role(target.role)
