"""Bulk import of practice exercises."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from fluencyjet.core.access import Track, parse_track
from fluencyjet.db.models.content import PracticeDay, PracticeExercise
from fluencyjet.utils.exceptions import InvalidInputError

IMPORT_MODES = {"typing", "reorder", "fill_blank", "translation"}
DEFAULT_XP = 150


@dataclass(slots=True)
class ExerciseRow:
    """One exercise to upsert into a lesson."""

    tamil: str
    english: str
    order_index: int
    xp: int = DEFAULT_XP
    structure_en: str | None = None


@dataclass(slots=True)
class ImportSummary:
    lesson_id: int
    level: str
    mode: str
    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated


def parse_text_rows(text: str, *, xp: int = DEFAULT_XP, start_index: int = 0) -> list[ExerciseRow]:
    """Parse ``Tamil | English`` lines; extra pipes stay in the English part."""

    rows: list[ExerciseRow] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = [part.strip() for part in line.split("|")]
        if len(parts) < 2:
            continue
        tamil, english = parts[0], " | ".join(parts[1:]).strip()
        if not tamil or not english:
            continue
        rows.append(
            ExerciseRow(tamil=tamil, english=english, order_index=start_index + len(rows), xp=xp)
        )
    return rows


def build_expected(mode: str, english: str) -> dict[str, Any]:
    words = english.split()
    expected: dict[str, Any] = {"answer": english, "sentence": english, "mode": mode}
    if mode == "reorder":
        expected["words"] = words
    return expected


class ExerciseImportService:
    """Upsert exercises keyed by lesson, type and order index.

    Re-running an import with the same rows updates them in place, so uploads
    are idempotent.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _get_or_create_day(self, level: Track, day_number: int, title_en: str | None) -> PracticeDay:
        day = self.db.scalars(
            select(PracticeDay).where(
                PracticeDay.level == level.value, PracticeDay.day_number == day_number
            )
        ).first()
        if day is None:
            day = PracticeDay(
                level=level.value,
                day_number=day_number,
                title_en=title_en or f"Day {day_number}",
                is_active=True,
            )
            self.db.add(day)
            self.db.flush()
        elif title_en:
            day.title_en = title_en
        return day

    def import_rows(
        self,
        *,
        lesson_id: Any,
        difficulty: str | None,
        mode: str,
        rows: Iterable[ExerciseRow],
        title_en: str | None = None,
        commit: bool = True,
    ) -> ImportSummary:
        try:
            lesson_number = int(lesson_id)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError("Invalid lessonId") from exc
        if lesson_number <= 0:
            raise InvalidInputError("Invalid lessonId")
        mode_key = str(mode or "").strip().lower()
        if mode_key not in IMPORT_MODES:
            raise InvalidInputError("Invalid mode", details={"allowed": sorted(IMPORT_MODES)})
        level = parse_track(difficulty) or Track.BEGINNER
        rows = list(rows)
        if not rows:
            raise InvalidInputError("No valid rows found. Expected: Tamil | English per line.")

        day = self._get_or_create_day(level, lesson_number, title_en)
        exercise_type = mode_key.upper()
        existing = {
            e.order_index: e
            for e in self.db.scalars(
                select(PracticeExercise).where(
                    PracticeExercise.practice_day_id == day.id,
                    PracticeExercise.type == exercise_type,
                )
            )
        }
        summary = ImportSummary(lesson_id=lesson_number, level=level.value, mode=mode_key)
        for row in rows:
            expected = build_expected(mode_key, row.english)
            exercise = existing.get(row.order_index)
            if exercise is None:
                exercise = PracticeExercise(
                    practice_day_id=day.id, type=exercise_type, order_index=row.order_index
                )
                self.db.add(exercise)
                existing[row.order_index] = exercise
                summary.inserted += 1
            else:
                summary.updated += 1
            exercise.prompt_ta = row.tamil
            exercise.structure_en = row.structure_en
            exercise.expected = expected
            exercise.xp = row.xp

        if commit:
            self.db.commit()
        else:
            self.db.flush()
        logger.info(
            f"Imported lesson {level.value}/{lesson_number} {mode_key}: "
            f"{summary.inserted} inserted, {summary.updated} updated"
        )
        return summary
