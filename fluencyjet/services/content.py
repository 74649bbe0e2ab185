"""Practice content selection behind the access resolver."""
from __future__ import annotations

import random
from typing import Any, MutableSequence, TypeVar

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from fluencyjet.config import settings
from fluencyjet.core.access import (
    AccessDecision,
    AccessSubject,
    FreeTierRules,
    Track,
    lock_map,
    parse_lesson_number,
    resolve_access,
)
from fluencyjet.db.models.content import PracticeDay, PracticeExercise
from fluencyjet.utils.exceptions import InvalidInputError, NotFoundError, PaywallError

T = TypeVar("T")

RANDOM_LIMIT_DEFAULT = 10
RANDOM_LIMIT_MAX = 50
VALID_MODES = {"typing", "reorder", "fill_blank", "translation"}


def fisher_yates(items: MutableSequence[T], rng: random.Random | None = None) -> MutableSequence[T]:
    """Shuffle ``items`` in place with an unbiased Fisher-Yates pass."""

    rng = rng or random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def matches_mode(exercise: PracticeExercise, mode: str | None) -> bool:
    """Typing exercises with a multi-word answer double as reorder puzzles."""

    if not mode:
        return True
    wanted = mode.upper()
    kind = (exercise.type or "").upper()
    if kind == wanted:
        return True
    return wanted == "REORDER" and kind == "TYPING" and len(exercise.answer_words()) > 1


def normalize_mode(mode: str | None) -> str | None:
    if mode is None or not str(mode).strip():
        return None
    value = str(mode).strip().lower().replace("-", "_")
    if value not in VALID_MODES:
        raise InvalidInputError(f"Unsupported mode: {mode}", details={"allowed": sorted(VALID_MODES)})
    return value


class ContentService:
    """Fetch ordered or sampled exercises for a practice session."""

    def __init__(
        self,
        db: Session,
        *,
        rules: FreeTierRules | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.db = db
        self.rules = rules or FreeTierRules.from_settings(settings)
        self.rng = rng or random.Random()

    def check_access(
        self, user: AccessSubject, *, lesson_number: int | None, difficulty: str | None
    ) -> AccessDecision:
        """Run the resolver and raise ``PaywallError`` on denial."""

        decision = resolve_access(
            user, lesson_number=lesson_number, difficulty=difficulty, rules=self.rules
        )
        if not decision.allowed:
            logger.warning(
                f"Paywall for user {getattr(user, 'id', None)}: lesson={lesson_number} "
                f"track={decision.track.value} reason={decision.reason}"
            )
            raise PaywallError(
                decision.message,
                free_lessons=decision.free_lessons,
                next_action=decision.next_action.as_dict() if decision.next_action else {},
            )
        return decision

    def _day(self, level: Track, day_number: int) -> PracticeDay | None:
        stmt = (
            select(PracticeDay)
            .options(selectinload(PracticeDay.exercises))
            .where(PracticeDay.level == level.value, PracticeDay.day_number == day_number)
            .where(PracticeDay.is_active.is_(True))
        )
        return self.db.scalars(stmt).first()

    def by_lesson(
        self,
        user: AccessSubject,
        lesson_id: Any,
        *,
        difficulty: str | None = None,
        mode: str | None = None,
    ) -> tuple[PracticeDay, list[PracticeExercise]]:
        """Return one lesson's exercises in stored order, filtered by mode."""

        lesson_number = parse_lesson_number(lesson_id)
        if lesson_number is None:
            raise InvalidInputError("lessonId must be a positive number")
        mode = normalize_mode(mode)
        decision = self.check_access(user, lesson_number=lesson_number, difficulty=difficulty)

        level = decision.track
        day = self._day(level, lesson_number)
        if day is None:
            raise NotFoundError(f"Lesson {lesson_number} not found")
        exercises = [e for e in day.exercises if matches_mode(e, mode)]
        exercises.sort(key=lambda e: (e.order_index, e.id))
        return day, exercises

    def random(
        self,
        user: AccessSubject,
        *,
        difficulty: str | None = None,
        lesson_id: Any = None,
        limit: Any = None,
        mode: str | None = None,
    ) -> list[PracticeExercise]:
        """Sample up to ``limit`` distinct exercises from recent lessons."""

        lesson_number = None
        if lesson_id not in (None, ""):
            lesson_number = parse_lesson_number(lesson_id)
            if lesson_number is None:
                raise InvalidInputError("lessonId must be a positive number")
        try:
            limit = int(limit) if limit not in (None, "") else RANDOM_LIMIT_DEFAULT
        except (TypeError, ValueError) as exc:
            raise InvalidInputError("limit must be a number") from exc
        limit = max(1, min(RANDOM_LIMIT_MAX, limit))
        mode = normalize_mode(mode)

        decision = self.check_access(user, lesson_number=lesson_number, difficulty=difficulty)
        level = decision.track

        days_stmt = select(PracticeDay.id).where(
            PracticeDay.level == level.value, PracticeDay.is_active.is_(True)
        )
        if lesson_number is not None:
            days_stmt = days_stmt.where(PracticeDay.day_number == lesson_number)
        days_stmt = days_stmt.order_by(
            PracticeDay.created_at.desc(), PracticeDay.day_number.desc()
        ).limit(settings.RANDOM_POOL_LESSONS)
        day_ids = list(self.db.scalars(days_stmt))
        if not day_ids:
            return []

        pool = list(
            self.db.scalars(
                select(PracticeExercise)
                .where(PracticeExercise.practice_day_id.in_(day_ids))
                .order_by(PracticeExercise.id)
            )
        )
        pool = [e for e in pool if matches_mode(e, mode)]
        fisher_yates(pool, self.rng)
        return pool[:limit]

    def list_lessons(self, user: AccessSubject, *, difficulty: str | None = None) -> list[dict[str, Any]]:
        """Legacy lesson listing derived from practice days, with per-user lock flags."""

        track = resolve_access(
            user, lesson_number=None, difficulty=difficulty, rules=self.rules
        ).track
        days = list(
            self.db.scalars(
                select(PracticeDay)
                .where(PracticeDay.level == track.value, PracticeDay.is_active.is_(True))
                .order_by(PracticeDay.day_number.asc())
            )
        )
        locks = lock_map(
            user, [d.day_number for d in days], difficulty=track.value, rules=self.rules
        )
        return [
            {
                "id": day.day_number,
                "slug": f"{track.value.lower()}-lesson-{day.day_number}",
                "title": day.title_en or f"Lesson {day.day_number}",
                "title_ta": day.title_ta,
                "difficulty": track.value.lower(),
                "is_locked": locks[day.day_number],
            }
            for day in days
        ]
