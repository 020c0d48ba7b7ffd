"""Session tokens — minting, decoding, refreshing.

Learn: sessions are stateless signed JWTs ("token" strategy). The claim
set is deliberately small:

    sub          canonical user id
    username     display handle at the time of minting
    email
    external_id  Google id, if linked
    iat / exp    issued-at / expiry
    type         always "session"

Claims are never copied forward. Every issue() and refresh() re-reads
the user from storage and rebuilds them, so a renamed or newly linked
account shows up on the next refresh, and a vanished one is rejected.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from sneakerbox.auth.errors import Unauthorized, UserNotFound
from sneakerbox.auth.identity import IdentityResolver, LocalId
from sneakerbox.config import Settings, settings as default_settings
from sneakerbox.db.models import User

TOKEN_TYPE = "session"


class TokenError(Exception):
    """Raised when token verification fails."""


@dataclass(frozen=True)
class SessionConfig:
    """Session policy. Only the "token" strategy exists."""

    max_age: timedelta
    secret: str
    algorithm: str = "HS256"
    strategy: str = "token"

    def __post_init__(self):
        if self.strategy != "token":
            raise ValueError(f"Unsupported session strategy: {self.strategy}")
        if self.max_age <= timedelta(0):
            raise ValueError("Session max_age must be positive")

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None) -> "SessionConfig":
        s = s or default_settings
        return cls(
            max_age=timedelta(seconds=s.session_max_age),
            secret=s.jwt_secret,
            algorithm=s.jwt_algorithm,
            strategy=s.session_strategy,
        )


@dataclass(frozen=True)
class SessionClaims:
    sub: str
    username: str
    email: str
    external_id: Optional[str]
    issued_at: datetime
    expires_at: datetime

    def to_payload(self) -> dict:
        return {
            "sub": self.sub,
            "username": self.username,
            "email": self.email,
            "external_id": self.external_id,
            "iat": self.issued_at,
            "exp": self.expires_at,
            "type": TOKEN_TYPE,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "SessionClaims":
        return cls(
            sub=payload["sub"],
            username=payload.get("username", ""),
            email=payload.get("email", ""),
            external_id=payload.get("external_id"),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


@dataclass(frozen=True)
class IssuedSession:
    token: str
    claims: SessionClaims


class SessionIssuer:
    """Mints and refreshes session tokens for resolved users."""

    def __init__(self, config: SessionConfig, resolver: IdentityResolver):
        self.config = config
        self.resolver = resolver

    async def issue(self, user_id: uuid.UUID | str) -> IssuedSession:
        """Mint a token for user_id. Raises UserNotFound if it no longer resolves."""
        user = await self.resolver.resolve(LocalId(str(user_id)))
        if user is None:
            raise UserNotFound()
        return self._mint(user)

    async def refresh(self, token: str) -> IssuedSession:
        """Decode token, re-resolve its subject, mint a fresh token.

        Raises Unauthorized for bad/expired tokens and for subjects
        that no longer resolve.
        """
        try:
            claims = self.decode(token)
        except TokenError as e:
            raise Unauthorized(str(e))
        user = await self.resolver.resolve_by_any_id(claims.sub)
        if user is None:
            raise Unauthorized("Session is no longer valid")
        return self._mint(user)

    def decode(self, token: str) -> SessionClaims:
        """Verify signature + expiry and return the claims.

        Raises TokenError on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")
        if payload.get("type") != TOKEN_TYPE:
            raise TokenError("Not a session token")
        return SessionClaims.from_payload(payload)

    def _mint(self, user: User) -> IssuedSession:
        # JWT timestamps are whole seconds; keep the claims in step with the token.
        now = datetime.now(timezone.utc).replace(microsecond=0)
        claims = SessionClaims(
            sub=str(user.id),
            username=user.username,
            email=user.email,
            external_id=user.google_id,
            issued_at=now,
            expires_at=now + self.config.max_age,
        )
        token = jwt.encode(
            claims.to_payload(), self.config.secret, algorithm=self.config.algorithm
        )
        return IssuedSession(token=token, claims=claims)
