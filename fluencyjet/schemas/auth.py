"""Authentication related schemas."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from fluencyjet.schemas.user import UserRead


class Token(BaseModel):
    """Token pair returned after successful authentication."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    """Payload data extracted from access tokens."""

    sub: uuid.UUID
    exp: datetime
    type: str


class AuthResponse(Token):
    """Signup/login response: tokens plus the user profile."""

    ok: bool = True
    user: UserRead


class RefreshRequest(BaseModel):
    refresh_token: str
