"""Persistence of device push subscriptions."""

import logging
from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class SubscriptionStore:
    """Subscription rows keyed by endpoint.

    Every write commits on its own; there is no transaction spanning a whole
    dispatch.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(
        self,
        user_id: UUID,
        endpoint: str,
        p256dh: str,
        auth: str,
        user_agent: str | None = None,
    ) -> None:
        """Insert a subscription or overwrite the row that has the same endpoint."""
        dialect = self.db.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Upsert is not supported on dialect {dialect}")

        now = datetime.utcnow()
        stmt = insert(PushSubscription).values(
            user_id=user_id,
            endpoint=endpoint,
            p256dh=p256dh,
            auth=auth,
            user_agent=user_agent,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PushSubscription.endpoint],
            set_={
                "user_id": stmt.excluded.user_id,
                "p256dh": stmt.excluded.p256dh,
                "auth": stmt.excluded.auth,
                "user_agent": stmt.excluded.user_agent,
                "updated_at": now,
            },
        )

        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        logger.info(f"Stored push subscription for user {user_id}")

    async def list_for_users(self, user_ids: Iterable[UUID]) -> list[PushSubscription]:
        """Get every subscription owned by one of ``user_ids``."""
        ids = list(user_ids)
        if not ids:
            return []

        query = select(PushSubscription).where(PushSubscription.user_id.in_(ids))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_endpoint(self, endpoint: str) -> PushSubscription | None:
        result = await self.db.execute(
            select(PushSubscription).where(PushSubscription.endpoint == endpoint)
        )
        return result.scalar_one_or_none()

    async def delete_by_ids(self, subscription_ids: Iterable[UUID]) -> int:
        """Delete subscriptions by primary key.

        Deleting rows that are already gone is a no-op.

        Returns:
            Number of rows actually deleted
        """
        ids = list(set(subscription_ids))
        if not ids:
            return 0

        try:
            result = await self.db.execute(
                delete(PushSubscription)
                .where(PushSubscription.id.in_(ids))
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        return result.rowcount or 0

    async def delete_for_user(self, user_id: UUID, endpoint: str) -> int:
        """Delete the caller's own subscription for ``endpoint``."""
        try:
            result = await self.db.execute(
                delete(PushSubscription)
                .where(
                    PushSubscription.user_id == user_id,
                    PushSubscription.endpoint == endpoint,
                )
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        return result.rowcount or 0
