"""Schemas for practice content endpoints."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ExerciseRead(BaseModel):
    id: int
    lesson_id: int
    difficulty: str
    type: str
    prompt_ta: str
    structure_en: Optional[str] = None
    expected: dict[str, Any] = Field(default_factory=dict)
    xp: int
    order_index: int


class LessonQuizResponse(BaseModel):
    ok: bool = True
    lesson_id: int
    title: Optional[str] = None
    mode: Optional[str] = None
    count: int
    questions: list[ExerciseRead]


class RandomQuizResponse(BaseModel):
    ok: bool = True
    count: int
    questions: list[ExerciseRead]


class LessonRead(BaseModel):
    id: int
    slug: str
    title: str
    title_ta: Optional[str] = None
    difficulty: str
    is_locked: bool


class LessonListResponse(BaseModel):
    ok: bool = True
    lessons: list[LessonRead]
