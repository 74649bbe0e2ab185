"""Schemas for admin endpoints."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from fluencyjet.schemas.user import UserRead


class BulkExerciseItem(BaseModel):
    tamil: str = Field(min_length=1)
    english: str = Field(min_length=1)
    order_index: Optional[int] = Field(default=None, ge=0)
    xp: Optional[int] = Field(default=None, ge=0)
    structure_en: Optional[str] = None


class BulkExerciseRequest(BaseModel):
    """Either ``text`` (one ``Tamil | English`` pair per line) or ``exercises``."""

    lessonId: Any
    mode: str
    difficulty: Optional[str] = "beginner"
    text: Optional[str] = None
    exercises: Optional[list[BulkExerciseItem]] = None
    xp: int = Field(default=150, ge=0)
    title: Optional[str] = None

    @model_validator(mode="after")
    def ensure_rows_present(self) -> "BulkExerciseRequest":
        if not (self.text and self.text.strip()) and not self.exercises:
            raise ValueError("Provide text or exercises")
        return self


class BulkExerciseResponse(BaseModel):
    ok: bool = True
    lesson_id: int
    difficulty: str
    mode: str
    inserted: int
    updated: int


class AdminUserResponse(BaseModel):
    ok: bool = True
    message: Optional[str] = None
    user: UserRead


class AdminUserListResponse(BaseModel):
    ok: bool = True
    users: list[UserRead]


class AdminXpAdjustRequest(BaseModel):
    amount: Any = None
    reason: Optional[str] = Field(default=None, max_length=255)
