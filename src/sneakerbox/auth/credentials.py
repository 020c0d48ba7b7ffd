"""Credential verifier — username/password sign-in.

Learn: two rules drive this module.
1. Malformed input is rejected before the database is touched.
2. "No such user" and "wrong password" are indistinguishable to the
   caller: same exception, and roughly the same amount of bcrypt work.
"""

import uuid
from dataclasses import dataclass
from functools import lru_cache

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from sneakerbox.auth.errors import (
    InternalError,
    InvalidCredentialFormat,
    InvalidUsernameOrPassword,
)
from sneakerbox.auth.password import hash_password, verify_password_async
from sneakerbox.db.models import User

logger = structlog.get_logger()

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class VerifiedUser:
    """Minimal identity returned by a successful verification."""

    id: uuid.UUID
    username: str
    email: str


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("sneakerbox-timing-equalizer")


def validate_credential_format(username, password) -> tuple[str, str]:
    """Check shape only. Returns the trimmed username and the password."""
    if not username or not password:
        raise InvalidCredentialFormat("Username and password are required")
    if not isinstance(username, str) or not isinstance(password, str):
        raise InvalidCredentialFormat("Invalid credential format")
    username = username.strip()
    if len(username) < MIN_USERNAME_LENGTH:
        raise InvalidCredentialFormat(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters long"
        )
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidCredentialFormat(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return username, password


class CredentialVerifier:
    """Checks a username/password pair against the stored bcrypt hash."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def verify(self, username, password) -> VerifiedUser:
        username, password = validate_credential_format(username, password)

        try:
            result = await self.db.execute(
                select(User)
                .where(User.username == username)
                .options(undefer(User.password_hash))
            )
            user = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("auth.verify_storage_error", username=username, error=str(e))
            raise InternalError()

        if user is None or not user.password_hash:
            # Burn the same bcrypt time as a real comparison.
            await verify_password_async(password, _dummy_hash())
            logger.info("auth.signin_failed", username=username)
            raise InvalidUsernameOrPassword()

        if not await verify_password_async(password, user.password_hash):
            logger.info("auth.signin_failed", username=username)
            raise InvalidUsernameOrPassword()

        return VerifiedUser(id=user.id, username=user.username, email=user.email)
