"""Lesson listing derived from practice days."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from fluencyjet.api.deps import get_content_service, get_current_user
from fluencyjet.db.models.user import User
from fluencyjet.schemas import LessonListResponse, LessonRead
from fluencyjet.services.content import ContentService


router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("", response_model=LessonListResponse)
def list_lessons(
    difficulty: Optional[str] = Query(None, description="beginner | intermediate"),
    current_user: User = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> LessonListResponse:
    """Lessons of a track with a per-user lock flag."""

    lessons = service.list_lessons(current_user, difficulty=difficulty)
    return LessonListResponse(lessons=[LessonRead(**lesson) for lesson in lessons])
