"""Shared API dependencies."""
from __future__ import annotations

import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from fluencyjet.config import settings
from fluencyjet.core.security import InvalidTokenError, decode_token
from fluencyjet.db.models.user import User
from fluencyjet.db.session import get_db
from fluencyjet.schemas import TokenPayload
from fluencyjet.services.billing import BillingService
from fluencyjet.services.content import ContentService
from fluencyjet.services.xp_ledger import XpLedgerService
from fluencyjet.utils.exceptions import AuthenticationError, ForbiddenError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)

__all__ = [
    "get_db",
    "get_current_user",
    "get_current_admin",
    "get_xp_ledger",
    "get_content_service",
    "get_billing_service",
]


def get_current_user(
    token: str | None = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated user from the Authorization header."""

    if not token:
        raise AuthenticationError("Not authenticated")

    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise InvalidTokenError("Token must be an access token")
        token_data = TokenPayload.model_validate(payload)
        user_id = uuid.UUID(str(token_data.sub))
    except (InvalidTokenError, ValidationError, ValueError, KeyError) as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationError("Invalid or expired token")
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require an authenticated admin."""

    if not current_user.is_admin:
        raise ForbiddenError("Not authorized")
    return current_user


def get_xp_ledger(db: Session = Depends(get_db)) -> XpLedgerService:
    return XpLedgerService(db)


def get_content_service(db: Session = Depends(get_db)) -> ContentService:
    return ContentService(db)


def get_billing_service(db: Session = Depends(get_db)) -> BillingService:
    return BillingService(db)
