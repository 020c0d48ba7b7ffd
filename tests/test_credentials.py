"""Credential verifier tests.

Learn: the two properties that matter most are checked directly:
malformed input never reaches storage, and "unknown user" is
indistinguishable from "wrong password".
"""

from unittest.mock import AsyncMock

import pytest

from sneakerbox.auth.credentials import CredentialVerifier, VerifiedUser
from sneakerbox.auth.errors import InvalidCredentialFormat, InvalidUsernameOrPassword
from sneakerbox.services.user_service import UserService


@pytest.fixture
async def alice(db_session):
    return await UserService(db_session).register("alice", "alice@x.com", "secret1")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,password",
    [
        ("", "secret1"),
        ("alice", ""),
        (None, "secret1"),
        ("al", "secret1"),
        ("  a  ", "secret1"),
        ("alice", "12345"),
        (123, "secret1"),
        ("alice", ["secret1"]),
    ],
)
async def test_malformed_credentials_never_touch_storage(username, password):
    db = AsyncMock()
    with pytest.raises(InvalidCredentialFormat):
        await CredentialVerifier(db).verify(username, password)
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_verify_success_returns_minimal_identity(db_session, alice):
    verified = await CredentialVerifier(db_session).verify("alice", "secret1")
    assert verified == VerifiedUser(id=alice.id, username="alice", email="alice@x.com")
    assert not hasattr(verified, "password_hash")


@pytest.mark.asyncio
async def test_verify_trims_username(db_session, alice):
    verified = await CredentialVerifier(db_session).verify("  alice ", "secret1")
    assert verified.id == alice.id


@pytest.mark.asyncio
async def test_unknown_user_and_wrong_password_are_identical(db_session, alice):
    verifier = CredentialVerifier(db_session)

    with pytest.raises(InvalidUsernameOrPassword) as unknown:
        await verifier.verify("nobody", "secret1")
    with pytest.raises(InvalidUsernameOrPassword) as wrong:
        await verifier.verify("alice", "wrongpass")

    assert type(unknown.value) is type(wrong.value)
    assert unknown.value.detail == wrong.value.detail
    assert unknown.value.code == wrong.value.code
    assert unknown.value.status_code == wrong.value.status_code == 401
