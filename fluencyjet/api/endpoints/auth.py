"""Authentication API endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fluencyjet.api.deps import get_current_user, get_db
from fluencyjet.db.models.user import User
from fluencyjet.schemas import AuthResponse, RefreshRequest, UserCreate, UserLogin, UserRead, UserUpdate
from fluencyjet.services.auth import AuthService
from fluencyjet.services.users import UserService


router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(service: AuthService, user: User) -> AuthResponse:
    tokens = service.create_tokens(user)
    return AuthResponse(**tokens.model_dump(), user=UserRead.model_validate(user))


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: UserCreate, db: Session = Depends(get_db)) -> AuthResponse:
    """Register a free-plan user and sign them in."""

    service = AuthService(db)
    user = service.register_user(payload)
    return _auth_response(service, user)


@router.post("/login", response_model=AuthResponse)
def login(payload: UserLogin, db: Session = Depends(get_db)) -> AuthResponse:
    """Authenticate a user and return JWT tokens."""

    service = AuthService(db)
    user = service.authenticate_user(payload.email, payload.password)
    return _auth_response(service, user)


@router.post("/refresh", response_model=AuthResponse)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """Exchange a refresh token for a new token pair."""

    service = AuthService(db)
    user, tokens = service.refresh(payload.refresh_token)
    return AuthResponse(**tokens.model_dump(), user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    """Return the authenticated user profile."""

    return current_user


@router.patch("/me", response_model=UserRead)
def update_current_user(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Update the name or track placement of the current user."""

    return UserService(db).update(current_user, payload)
