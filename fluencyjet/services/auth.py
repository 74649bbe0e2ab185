"""Authentication service layer."""
from __future__ import annotations

import uuid

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fluencyjet.core.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from fluencyjet.db.models.user import User
from fluencyjet.schemas import Token, UserCreate
from fluencyjet.utils.exceptions import AuthenticationError, ConflictError


class EmailAlreadyExistsError(ConflictError):
    """Raised when attempting to register with an email that already exists."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when authentication credentials are invalid."""


class AuthService:
    """Encapsulates user registration and authentication logic."""

    def __init__(self, db: Session):
        self.db = db

    def register_user(self, payload: UserCreate) -> User:
        """Create a new free-plan user."""

        email = payload.email.lower()
        existing_user = self.db.scalar(select(User).where(User.email == email))
        if existing_user:
            raise EmailAlreadyExistsError("Email already registered. Please log in.")

        user = User(
            email=email,
            hashed_password=get_password_hash(payload.password),
            name=payload.name,
            track=payload.track,
            plan="FREE",
            tier_level="free",
            has_access=False,
        )

        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise EmailAlreadyExistsError("Email already registered. Please log in.") from exc
        self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        """Validate credentials and return the associated user."""

        user = self.db.scalar(select(User).where(User.email == email.lower()))
        if not user or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login for {email}")
            raise InvalidCredentialsError("Invalid email or password.")
        if not user.is_active:
            raise InvalidCredentialsError("Account is disabled.")
        return user

    def refresh(self, refresh_token: str) -> tuple[User, Token]:
        """Exchange a refresh token for a fresh token pair."""

        try:
            payload = decode_token(refresh_token)
            if payload.get("type") != "refresh":
                raise InvalidTokenError("Token must be a refresh token")
            user_id = uuid.UUID(str(payload["sub"]))
        except (InvalidTokenError, KeyError, ValueError) as exc:
            raise AuthenticationError("Invalid or expired refresh token") from exc

        user = self.db.get(User, user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid or expired refresh token")
        return user, self.create_tokens(user)

    def create_tokens(self, user: User) -> Token:
        """Generate access and refresh tokens for a user."""

        user_id = uuid.UUID(str(user.id))
        access = create_access_token(str(user_id))
        refresh = create_refresh_token(str(user_id))
        return Token(access_token=access, refresh_token=refresh)
