"""Account provisioner — first Google sign-in creates or links an account.

Learn: the flow, in order:
1. Google id already known            → that account, unchanged
2. Email matches an unlinked account  → link it (set google_id)
3. Nothing matches                    → create one, but only with a name + email

There is no lock around this. Two simultaneous first sign-ins race to
INSERT; the unique indexes on google_id/email make one of them fail with
IntegrityError, and the loser simply re-resolves the row the winner made.
"""

import asyncio
import secrets
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sneakerbox.auth.errors import IncompleteExternalProfile, InternalError
from sneakerbox.auth.identity import ExternalId, IdentityResolver, normalize_email
from sneakerbox.auth.password import placeholder_password_hash
from sneakerbox.db.models import USERNAME_MAX_LENGTH, User

logger = structlog.get_logger()

# Room for the "-xxxx" collision suffix.
SUFFIX_LENGTH = 5


@dataclass(frozen=True)
class ExternalProfile:
    """What the identity provider told us about the person signing in."""

    external_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class AccountProvisioner:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.resolver = IdentityResolver(db)

    async def provision_or_link(self, profile: ExternalProfile) -> User:
        if not profile.external_id:
            raise IncompleteExternalProfile("External profile has no id")

        user = await self.resolver.resolve(ExternalId(profile.external_id))
        if user is not None:
            return user

        if profile.email:
            user = await self.resolver.resolve_by_email(profile.email)
            if user is not None:
                return await self._link(user, profile)

        if not profile.display_name or not profile.email:
            logger.warning(
                "provision.incomplete_profile", external_id=profile.external_id
            )
            raise IncompleteExternalProfile()

        return await self._create(profile)

    async def _link(self, user: User, profile: ExternalProfile) -> User:
        if user.google_id:
            if user.google_id != profile.external_id:
                logger.warning(
                    "provision.email_linked_elsewhere",
                    user_id=str(user.id),
                    external_id=profile.external_id,
                )
            return user

        user_id = str(user.id)
        user.google_id = profile.external_id
        try:
            await self.db.commit()
        except IntegrityError:
            # Someone linked or created this Google id first.
            await self.db.rollback()
            return await self._after_conflict(profile)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("provision.link_failed", user_id=user_id, error=str(e))
            raise InternalError()

        logger.info("provision.linked", user_id=user_id)
        return user

    async def _create(self, profile: ExternalProfile) -> User:
        password_hash = await asyncio.to_thread(placeholder_password_hash)
        username = _username_for(profile)

        for candidate in (username, f"{username}-{secrets.token_hex(2)}"):
            user = User(
                username=candidate,
                email=normalize_email(profile.email),
                google_id=profile.external_id,
                password_hash=password_hash,
            )
            self.db.add(user)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                existing = await self._after_conflict(profile, required=False)
                if existing is not None:
                    return existing
                # Only the username collided; try the suffixed one.
                continue
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error("provision.create_failed", error=str(e))
                raise InternalError()

            logger.info("provision.created", user_id=str(user.id))
            return user

        logger.error("provision.username_exhausted", username=username)
        raise InternalError()

    async def _after_conflict(
        self, profile: ExternalProfile, required: bool = True
    ) -> Optional[User]:
        user = await self.resolver.resolve(ExternalId(profile.external_id))
        if user is None and profile.email:
            user = await self.resolver.resolve_by_email(profile.email)
            if user is not None and user.google_id != profile.external_id:
                # The email row exists but is linked elsewhere or not at all;
                # run the normal link path against the fresh row.
                return await self._link(user, profile)
        if user is None and required:
            logger.error("provision.conflict_unresolved", external_id=profile.external_id)
            raise InternalError()
        return user


def _username_for(profile: ExternalProfile) -> str:
    limit = USERNAME_MAX_LENGTH - SUFFIX_LENGTH
    name = (profile.display_name or "").strip()[:limit].rstrip()
    if len(name) >= 3:
        return name
    local_part = normalize_email(profile.email).split("@", 1)[0][:limit]
    return local_part if len(local_part) >= 3 else f"{local_part}-user"
