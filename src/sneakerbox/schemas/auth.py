"""Pydantic schemas for registration, sign-in and sessions.

Learn: nothing here ever carries a password hash. UserRead is built from
the ORM row with from_attributes, and the row's hash column is deferred,
so it is not even loaded.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters long")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class SignInRequest(BaseModel):
    # Shape is checked by the credential verifier, not here, so that
    # malformed input gets the same structured error as any other caller.
    username: Any = None
    password: Any = None


class GoogleSignInRequest(BaseModel):
    id_token: str


class RefreshRequest(BaseModel):
    token: Optional[str] = None


class UserRead(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SessionUser(BaseModel):
    id: uuid.UUID
    username: str
    email: str


class SessionResponse(BaseModel):
    user: SessionUser
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class SessionInfo(BaseModel):
    """GET /session — who am I, according to the current token."""
    user: SessionUser
    external_id: Optional[str] = None
    issued_at: datetime
    expires_at: datetime
