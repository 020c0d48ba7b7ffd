"""Authorization gate — decide what happens to each inbound request.

Learn: a tiny state machine per request:

    UNAUTHENTICATED ──(public path)──────────────────▶ pass, no user
    UNAUTHENTICATED ──(protected, no token)──────────▶ REJECTED 401
    TOKEN_PRESENT_UNRESOLVED ──(bad/expired token)───▶ REJECTED 401
    TOKEN_PRESENT_UNRESOLVED ──(subject not found)───▶ REJECTED 404
    TOKEN_PRESENT_UNRESOLVED ──(subject resolved)────▶ AUTHORIZED

The allow-list is fail-closed: a path is public only if it is listed
exactly or starts with a listed prefix. Everything else needs a session.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog
from pydantic import BaseModel

from sneakerbox.auth.errors import AuthError, Unauthorized, UserNotFound
from sneakerbox.auth.identity import IdentityResolver
from sneakerbox.auth.jwt import SessionClaims, SessionIssuer, TokenError

logger = structlog.get_logger()


class GateState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_PRESENT_UNRESOLVED = "token_present_unresolved"
    AUTHORIZED = "authorized"
    REJECTED = "rejected"


class CurrentUser(BaseModel):
    """Read-only snapshot of the signed-in user, attached to the request."""

    id: uuid.UUID
    username: str
    email: str
    external_id: Optional[str] = None

    model_config = {"frozen": True}


@dataclass(frozen=True)
class GateOutcome:
    state: GateState
    user: Optional[CurrentUser] = None
    claims: Optional[SessionClaims] = None
    error: Optional[AuthError] = None

    @property
    def allowed(self) -> bool:
        return self.state != GateState.REJECTED


class PublicPaths:
    """Exact paths plus path prefixes that skip authentication."""

    def __init__(self, exact: Sequence[str], prefixes: Sequence[str] = ()):
        self.exact = frozenset(exact)
        self.prefixes = tuple(prefixes)

    def __contains__(self, path: str) -> bool:
        if path in self.exact:
            return True
        return any(path.startswith(prefix) for prefix in self.prefixes)


class AuthorizationGate:
    def __init__(
        self,
        public_paths: PublicPaths,
        issuer: SessionIssuer,
        resolver: IdentityResolver,
    ):
        self.public_paths = public_paths
        self.issuer = issuer
        self.resolver = resolver

    async def evaluate(self, path: str, token: Optional[str]) -> GateOutcome:
        if path in self.public_paths:
            return GateOutcome(state=GateState.UNAUTHENTICATED)

        if not token:
            return GateOutcome(state=GateState.REJECTED, error=Unauthorized())

        # TOKEN_PRESENT_UNRESOLVED
        try:
            claims = self.issuer.decode(token)
        except TokenError as e:
            logger.info("gate.token_rejected", path=path, reason=str(e))
            return GateOutcome(state=GateState.REJECTED, error=Unauthorized())

        user = await self.resolver.resolve_by_any_id_select(claims.sub)
        if user is None:
            logger.warning("gate.user_not_found", path=path, sub=claims.sub)
            return GateOutcome(state=GateState.REJECTED, error=UserNotFound())

        return GateOutcome(
            state=GateState.AUTHORIZED,
            user=CurrentUser(
                id=user.id,
                username=user.username,
                email=user.email,
                external_id=user.google_id,
            ),
            claims=claims,
        )
