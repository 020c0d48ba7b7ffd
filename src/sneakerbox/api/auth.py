"""Auth API — registration, sign-in, refresh, sign-out, current session.

Learn: Routes for the session lifecycle:
- POST /auth/register → create a local account
- POST /auth/signin   → username/password → session token (+ cookie)
- POST /auth/google   → Google ID token → find/link/create → session token
- POST /auth/refresh  → current token → fresh token, claims rebuilt from storage
- POST /auth/signout  → clear the session cookie
- GET  /session       → who the current token belongs to (protected)

Everything under /auth/ is on the public allow-list; /session is not.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from sneakerbox.auth.credentials import CredentialVerifier
from sneakerbox.auth.dependencies import (
    extract_token,
    get_current_user,
    get_session_issuer,
)
from sneakerbox.auth.errors import Unauthorized
from sneakerbox.auth.gate import CurrentUser
from sneakerbox.auth.google import GoogleTokenVerifier, get_google_verifier
from sneakerbox.auth.jwt import IssuedSession, SessionIssuer
from sneakerbox.auth.provisioning import AccountProvisioner
from sneakerbox.config import settings
from sneakerbox.db.engine import get_db
from sneakerbox.schemas.auth import (
    GoogleSignInRequest,
    RefreshRequest,
    RegisterRequest,
    SessionInfo,
    SessionResponse,
    SessionUser,
    SignInRequest,
    UserRead,
)
from sneakerbox.services.user_service import DuplicateUser, UserService

router = APIRouter(prefix="/auth")
session_router = APIRouter()


def _session_response(response: Response, issued: IssuedSession) -> SessionResponse:
    response.set_cookie(
        settings.session_cookie_name,
        issued.token,
        max_age=settings.session_max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    claims = issued.claims
    return SessionResponse(
        user=SessionUser(id=claims.sub, username=claims.username, email=claims.email),
        access_token=issued.token,
        expires_at=claims.expires_at,
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a new local account."""
    try:
        return await UserService(db).register(
            username=body.username, email=body.email, password=body.password
        )
    except DuplicateUser:
        raise HTTPException(status_code=400, detail="Username or email already exists")


# ─── Sign in ─────────────────────────────────────────────


@router.post("/signin", response_model=SessionResponse)
async def signin(
    body: SignInRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    """Username + password → session token."""
    verified = await CredentialVerifier(db).verify(body.username, body.password)
    issued = await issuer.issue(verified.id)
    return _session_response(response, issued)


@router.post("/google", response_model=SessionResponse)
async def google_signin(
    body: GoogleSignInRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
    verifier: GoogleTokenVerifier = Depends(get_google_verifier),
):
    """Google ID token → provisioned/linked account → session token."""
    profile = await verifier.verify(body.id_token)
    user = await AccountProvisioner(db).provision_or_link(profile)
    issued = await issuer.issue(user.id)
    return _session_response(response, issued)


# ─── Refresh / sign out ─────────────────────────────────


@router.post("/refresh", response_model=SessionResponse)
async def refresh(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    """Re-issue the session with claims rebuilt from the current user record."""
    token = (body.token if body else None) or extract_token(request)
    if not token:
        raise Unauthorized()
    issued = await issuer.refresh(token)
    return _session_response(response, issued)


@router.post("/signout", status_code=204)
async def signout(response: Response):
    response.delete_cookie(settings.session_cookie_name)


# ─── Current session ────────────────────────────────────


@session_router.get("/session", response_model=SessionInfo)
async def get_session(request: Request, user: CurrentUser = Depends(get_current_user)):
    """The signed-in user plus the token's timestamps."""
    claims = request.state.claims
    return SessionInfo(
        user=SessionUser(id=user.id, username=user.username, email=user.email),
        external_id=user.external_id,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
