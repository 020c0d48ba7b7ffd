"""Sneaker service — owner-scoped CRUD over a user's collection.

Learn: the service is constructed for exactly one owner. Every query it
runs carries `user_id == owner_id`, so a sneaker that belongs to someone
else looks exactly like one that does not exist.
"""

import uuid

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from sneakerbox.db.models import Sneaker

logger = structlog.get_logger()


class SneakerIdsNotFound(Exception):
    """Bulk delete named ids the owner does not have."""

    def __init__(self, requested: int, found: list[Sneaker]):
        self.requested = requested
        self.found = found
        super().__init__(f"{requested - len(found)} sneaker id(s) not found")


class SneakerService:
    """Business logic for one user's sneakers."""

    def __init__(self, db: AsyncSession, owner_id: uuid.UUID):
        self.db = db
        self.owner_id = owner_id

    async def list_sneakers(self) -> list[Sneaker]:
        result = await self.db.execute(
            select(Sneaker)
            .where(Sneaker.user_id == self.owner_id)
            .order_by(Sneaker.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_sneaker(self, sneaker_id: uuid.UUID) -> Sneaker | None:
        result = await self.db.execute(
            select(Sneaker).where(
                Sneaker.id == sneaker_id, Sneaker.user_id == self.owner_id
            )
        )
        return result.scalars().first()

    async def create_sneaker(self, data: dict) -> Sneaker:
        sneaker = Sneaker(user_id=self.owner_id, **data)
        self.db.add(sneaker)
        await self.db.commit()
        logger.info("sneaker.created", sneaker_id=str(sneaker.id), user_id=str(self.owner_id))
        return sneaker

    async def update_sneaker(
        self, sneaker_id: uuid.UUID, changes: dict
    ) -> Sneaker | None:
        """Apply changes to an owned sneaker. None if not found or not owned."""
        sneaker = await self.get_sneaker(sneaker_id)
        if sneaker is None:
            return None
        for key, value in changes.items():
            setattr(sneaker, key, value)
        await self.db.commit()
        await self.db.refresh(sneaker)
        return sneaker

    async def delete_sneaker(self, sneaker_id: uuid.UUID) -> Sneaker | None:
        sneaker = await self.get_sneaker(sneaker_id)
        if sneaker is None:
            return None
        await self.db.delete(sneaker)
        await self.db.commit()
        logger.info("sneaker.deleted", sneaker_id=str(sneaker_id), user_id=str(self.owner_id))
        return sneaker

    async def delete_many(self, sneaker_ids: list[uuid.UUID]) -> list[Sneaker]:
        """Delete all of sneaker_ids, or none of them.

        Raises SneakerIdsNotFound if any id is missing or owned by
        someone else; nothing is deleted in that case.
        """
        ids = list(dict.fromkeys(sneaker_ids))
        result = await self.db.execute(
            select(Sneaker).where(
                Sneaker.id.in_(ids), Sneaker.user_id == self.owner_id
            )
        )
        found = list(result.scalars().all())
        if len(found) != len(ids):
            raise SneakerIdsNotFound(requested=len(ids), found=found)

        await self.db.execute(
            delete(Sneaker).where(
                Sneaker.id.in_(ids), Sneaker.user_id == self.owner_id
            )
        )
        await self.db.commit()
        logger.info("sneaker.bulk_deleted", count=len(found), user_id=str(self.owner_id))
        return found
