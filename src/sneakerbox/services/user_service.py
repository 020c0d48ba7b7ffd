"""User service — local registration.

Learn: registration checks username and email together and answers with
one generic message, so the endpoint cannot be used to probe which of
the two is taken.
"""

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sneakerbox.auth.password import hash_password_async
from sneakerbox.db.models import User

logger = structlog.get_logger()


class DuplicateUser(Exception):
    """Username or email already taken."""


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a local account. Inputs are already trimmed/normalised."""
        result = await self.db.execute(
            select(User.id).where(or_(User.username == username, User.email == email))
        )
        if result.first() is not None:
            logger.info("auth.register_duplicate", username=username)
            raise DuplicateUser()

        user = User(
            username=username,
            email=email,
            password_hash=await hash_password_async(password),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration.
            await self.db.rollback()
            raise DuplicateUser()

        logger.info("auth.registered", user_id=str(user.id))
        return user
