"""Test fixtures — a fresh SQLite database per test.

Learn: the app never reaches for a global engine; it asks for a
StorageClient through the get_storage dependency. Tests build their own
client on a throwaway SQLite file (aiosqlite) and override get_storage,
so every test starts from an empty schema and the real auth pipeline
(gate, issuer, resolver) runs unmodified.

bcrypt's work factor is dropped to the minimum so that the many
register/sign-in calls stay fast.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from sneakerbox.auth import password as password_module
from sneakerbox.auth.google import get_google_verifier
from sneakerbox.auth.jwt import SessionClaims
from sneakerbox.auth.provisioning import ExternalProfile
from sneakerbox.config import settings
from sneakerbox.db.engine import RetryPolicy, StorageClient, get_storage
from sneakerbox.main import app


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(password_module, "BCRYPT_ROUNDS", 4)


@pytest_asyncio.fixture()
async def storage(tmp_path):
    """StorageClient on a per-test SQLite file, schema created."""
    client = StorageClient(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await client.connect(RetryPolicy.immediate())
    await client.create_all()
    try:
        yield client
    finally:
        await client.dispose()


@pytest_asyncio.fixture()
async def db_session(storage):
    async with storage.session() as session:
        yield session


class FakeGoogleVerifier:
    """Stands in for Google's tokeninfo endpoint.

    Tests register the profile a given ID token should turn into.
    """

    def __init__(self):
        self.profiles: dict[str, ExternalProfile] = {}

    def register(self, id_token: str, profile: ExternalProfile) -> None:
        self.profiles[id_token] = profile

    async def verify(self, id_token: str) -> ExternalProfile:
        from sneakerbox.auth.errors import Unauthorized

        if id_token not in self.profiles:
            raise Unauthorized("Invalid Google token")
        return self.profiles[id_token]


@pytest.fixture()
def google():
    return FakeGoogleVerifier()


@pytest_asyncio.fixture()
async def client(storage, google):
    """HTTP client against the real app, with storage + Google swapped out."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_google_verifier] = lambda: google

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def register_and_sign_in(
    client: AsyncClient, username: str, password: str = "secret1", email: str | None = None
) -> dict:
    """Register a local account and sign in. Returns auth headers + user."""
    email = email or f"{username}@example.com"
    r = await client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    assert r.status_code == 201, r.text
    r = await client.post(
        "/api/v1/auth/signin", json={"username": username, "password": password}
    )
    assert r.status_code == 200, r.text
    body = r.json()
    # Keep the cookie jar clean so each test chooses its own token transport.
    client.cookies.clear()
    return {
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
        "user": body["user"],
        "token": body["access_token"],
    }


def make_token(sub: str, expires_in: timedelta = timedelta(hours=1), **overrides) -> str:
    """Sign a session token for an arbitrary subject (which may not exist)."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    claims = SessionClaims(
        sub=sub,
        username="ghost",
        email="ghost@example.com",
        external_id=None,
        issued_at=now,
        expires_at=now + expires_in,
    )
    payload = {**claims.to_payload(), **overrides}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def random_id() -> str:
    return str(uuid.uuid4())
