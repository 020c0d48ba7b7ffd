"""FastAPI auth dependencies.

Learn: authorization_gate is registered as an app-wide dependency in
main.py, so it runs for every routed request, public or not; the gate
itself decides which paths are public. Route handlers that need the
user ask for it with Depends(get_current_user).

Tokens are read from the Authorization header first, then from the
session cookie set at sign-in.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sneakerbox.auth.errors import Unauthorized
from sneakerbox.auth.gate import AuthorizationGate, CurrentUser, PublicPaths
from sneakerbox.auth.identity import IdentityResolver
from sneakerbox.auth.jwt import SessionConfig, SessionIssuer
from sneakerbox.config import settings
from sneakerbox.db.engine import get_db


def get_session_config() -> SessionConfig:
    return SessionConfig.from_settings(settings)


def get_session_issuer(
    db: AsyncSession = Depends(get_db),
    config: SessionConfig = Depends(get_session_config),
) -> SessionIssuer:
    return SessionIssuer(config, IdentityResolver(db))


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
        if token:
            return token
    return request.cookies.get(settings.session_cookie_name) or None


async def authorization_gate(
    request: Request,
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> None:
    """Run the gate; attach the user or raise the rejection."""
    gate = AuthorizationGate(
        public_paths=PublicPaths(settings.public_paths, settings.public_prefixes),
        issuer=issuer,
        resolver=issuer.resolver,
    )
    outcome = await gate.evaluate(request.url.path, extract_token(request))
    if not outcome.allowed:
        raise outcome.error
    request.state.user = outcome.user
    request.state.claims = outcome.claims


def get_current_user(request: Request) -> CurrentUser:
    """The gate's resolved user. 401 if the route was reached without one."""
    user = getattr(request.state, "user", None)
    if user is None:
        raise Unauthorized()
    return user
