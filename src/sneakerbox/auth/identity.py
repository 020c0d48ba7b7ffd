"""Identity resolver — one user, two kinds of id.

Learn: a session subject may be our own UUID (canonical id) or, for
older sessions and provider callbacks, a Google account id. Callers
should not have to know which. The explicit form is a tagged union:

    LocalId("6f1c...")     → users.id
    ExternalId("1045...")  → users.google_id

resolve() handles both; resolve_by_any_id() tries canonical first and
falls back to external. Storage errors are logged and reported as None:
to every caller, "could not resolve" means "not authenticated".
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only

from sneakerbox.db.models import User

logger = structlog.get_logger()

# Columns safe to hand to the rest of the app. No password_hash.
PUBLIC_USER_COLUMNS = (User.id, User.username, User.email, User.google_id, User.created_at)


@dataclass(frozen=True)
class LocalId:
    value: str


@dataclass(frozen=True)
class ExternalId:
    value: str


IdentityRef = Union[LocalId, ExternalId]


def parse_canonical_id(raw) -> Optional[uuid.UUID]:
    """Return the UUID if raw looks like a canonical id, else None."""
    if isinstance(raw, uuid.UUID):
        return raw
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityResolver:
    """Looks users up by canonical id, Google id or email."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(
        self, ref: IdentityRef, selection: Sequence | None = None
    ) -> Optional[User]:
        """Resolve a tagged id. Returns None when nothing matches."""
        if isinstance(ref, LocalId):
            user_id = parse_canonical_id(ref.value)
            if user_id is None:
                # Not a UUID: don't waste a query that can only miss (or error).
                return None
            condition = User.id == user_id
        elif isinstance(ref, ExternalId):
            if not ref.value:
                return None
            condition = User.google_id == ref.value
        else:
            raise TypeError(f"Unsupported identity reference: {ref!r}")
        return await self._first(condition, selection)

    async def resolve_by_any_id(self, raw_id) -> Optional[User]:
        return await self.resolve_by_any_id_select(raw_id, None)

    async def resolve_by_any_id_select(
        self, raw_id, selection: Sequence | None = PUBLIC_USER_COLUMNS
    ) -> Optional[User]:
        """Canonical id first, then Google id; only `selection` columns are loaded."""
        if not raw_id:
            return None
        raw_id = str(raw_id)
        if parse_canonical_id(raw_id) is not None:
            user = await self.resolve(LocalId(raw_id), selection)
            if user is not None:
                return user
        return await self.resolve(ExternalId(raw_id), selection)

    async def resolve_by_email(
        self, email: str, selection: Sequence | None = None
    ) -> Optional[User]:
        if not email:
            return None
        return await self._first(User.email == normalize_email(email), selection)

    async def _first(self, condition, selection: Sequence | None) -> Optional[User]:
        q = select(User).where(condition)
        if selection:
            q = q.options(load_only(*selection))
        try:
            result = await self.db.execute(q)
            return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("identity.resolve_failed", error=str(e))
            return None
