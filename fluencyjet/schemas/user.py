"""Pydantic models for user API interactions."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from fluencyjet.core.security import MAX_PASSWORD_BYTES

TrackName = Literal["BEGINNER", "INTERMEDIATE"]
PlanName = Literal["FREE", "BEGINNER", "INTERMEDIATE", "PRO"]


def _upper(value: object) -> object:
    return value.strip().upper() if isinstance(value, str) else value


class UserCreate(BaseModel):
    """Schema for signup input."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    track: Optional[TrackName] = None

    @field_validator("track", mode="before")
    @classmethod
    def upper_track(cls, value: object) -> object:
        return _upper(value)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class UserLogin(BaseModel):
    """Schema for user login request."""

    email: EmailStr
    password: str


class UserRead(BaseModel):
    """Public user profile."""

    id: uuid.UUID
    name: Optional[str] = None
    email: EmailStr
    plan: str
    tier_level: str
    has_access: bool
    track: Optional[str] = None
    is_admin: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    """Partial update of the current user's profile."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    track: Optional[TrackName] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("track", mode="before")
    @classmethod
    def upper_track(cls, value: object) -> object:
        return _upper(value)

    @model_validator(mode="after")
    def ensure_payload_not_empty(self) -> "UserUpdate":
        if not any(value is not None for value in self.model_dump().values()):
            raise ValueError("At least one field must be provided")
        return self


class UserAccessUpdate(BaseModel):
    """Admin change of a user's plan and access flags."""

    has_access: Optional[bool] = None
    tier_level: Optional[str] = Field(default=None, min_length=1, max_length=20)
    plan: Optional[PlanName] = None
    track: Optional[TrackName] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("plan", "track", mode="before")
    @classmethod
    def upper_choices(cls, value: object) -> object:
        return _upper(value)

    @field_validator("tier_level")
    @classmethod
    def lower_tier(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value

    @model_validator(mode="after")
    def ensure_payload_not_empty(self) -> "UserAccessUpdate":
        if not any(value is not None for value in self.model_dump().values()):
            raise ValueError("No valid fields provided to update")
        return self


class EntitlementsResponse(BaseModel):
    """Plan summary shown next to the upgrade button."""

    ok: bool = True
    plan: str
    tier_level: str
    proActive: bool
    tracks: list[str]
    freeLessons: dict[str, int | list[int]]
