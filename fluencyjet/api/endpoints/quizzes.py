"""Practice content endpoints, gated by the access resolver."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from fluencyjet.api.deps import get_content_service, get_current_user
from fluencyjet.db.models.content import PracticeDay, PracticeExercise
from fluencyjet.db.models.user import User
from fluencyjet.schemas import ExerciseRead, LessonQuizResponse, RandomQuizResponse
from fluencyjet.services.content import ContentService


router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def exercise_read(exercise: PracticeExercise, day: PracticeDay | None = None) -> ExerciseRead:
    day = day or exercise.day
    return ExerciseRead(
        id=exercise.id,
        lesson_id=day.day_number,
        difficulty=day.level.lower(),
        type=exercise.type.lower(),
        prompt_ta=exercise.prompt_ta,
        structure_en=exercise.structure_en,
        expected=exercise.expected or {},
        xp=exercise.xp,
        order_index=exercise.order_index,
    )


@router.get("/random", response_model=RandomQuizResponse)
def random_quizzes(
    lessonId: Optional[str] = Query(None, description="Only sample from this lesson"),
    difficulty: Optional[str] = Query(None, description="beginner | intermediate"),
    limit: Optional[str] = Query(None, description="Number of exercises (1..50, default 10)"),
    mode: Optional[str] = Query(None, description="Exercise mode filter"),
    current_user: User = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> RandomQuizResponse:
    """Randomly sampled exercises, or a 403 paywall payload."""

    exercises = service.random(
        current_user, difficulty=difficulty, lesson_id=lessonId, limit=limit, mode=mode
    )
    questions = [exercise_read(e) for e in exercises]
    return RandomQuizResponse(count=len(questions), questions=questions)


@router.get("/by-lesson/{lessonId}", response_model=LessonQuizResponse)
def lesson_quizzes(
    lessonId: str,
    mode: Optional[str] = Query(None, description="typing | reorder | fill_blank | translation"),
    difficulty: Optional[str] = Query(None, description="beginner | intermediate"),
    current_user: User = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> LessonQuizResponse:
    """All exercises of one lesson in order, or a 403 paywall payload."""

    day, exercises = service.by_lesson(current_user, lessonId, difficulty=difficulty, mode=mode)
    questions = [exercise_read(e, day) for e in exercises]
    return LessonQuizResponse(
        lesson_id=day.day_number,
        title=day.title_en,
        mode=mode,
        count=len(questions),
        questions=questions,
    )
