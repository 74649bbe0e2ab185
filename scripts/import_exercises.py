"""Import practice exercises from a CSV file.

Columns: ``lesson_id, difficulty, mode, tamil, english`` and optionally
``order_index`` and ``xp``. Rows are grouped per lesson, difficulty and mode
and upserted with the same service the admin bulk endpoint uses, so running
the import twice updates rows instead of duplicating them.

Usage:

  python scripts/import_exercises.py exercises.csv
"""
from __future__ import annotations

import argparse
import csv
import sys
from collections import defaultdict
from pathlib import Path

from sqlalchemy.orm import Session

sys.path.append(str(Path(__file__).resolve().parent.parent))

from fluencyjet.db.session import SessionLocal
from fluencyjet.services.exercise_import import DEFAULT_XP, ExerciseImportService, ExerciseRow


REQUIRED_COLUMNS = {"lesson_id", "difficulty", "mode", "tamil", "english"}


def read_groups(csv_path: str) -> dict[tuple[str, str, str], list[ExerciseRow]]:
    groups: dict[tuple[str, str, str], list[ExerciseRow]] = defaultdict(list)
    with open(csv_path, "r", encoding="utf-8-sig", newline="") as file:
        reader = csv.DictReader(file)
        missing = REQUIRED_COLUMNS - set(reader.fieldnames or [])
        if missing:
            raise SystemExit(f"CSV is missing columns: {', '.join(sorted(missing))}")

        for line_no, row in enumerate(reader, start=2):
            tamil = (row.get("tamil") or "").strip()
            english = (row.get("english") or "").strip()
            if not tamil or not english:
                print(f"Skipping line {line_no}: tamil and english are required")
                continue
            key = (
                row["lesson_id"].strip(),
                (row.get("difficulty") or "beginner").strip().lower(),
                row["mode"].strip().lower(),
            )
            rows = groups[key]
            order_index = row.get("order_index")
            xp = row.get("xp")
            rows.append(
                ExerciseRow(
                    tamil=tamil,
                    english=english,
                    order_index=int(order_index) if order_index else len(rows),
                    xp=int(xp) if xp else DEFAULT_XP,
                )
            )
    return groups


def import_csv(csv_path: str) -> tuple[int, int]:
    """Upsert every group in the CSV; returns ``(inserted, updated)``."""

    db: Session = SessionLocal()
    inserted = updated = 0
    try:
        service = ExerciseImportService(db)
        for (lesson_id, difficulty, mode), rows in read_groups(csv_path).items():
            summary = service.import_rows(
                lesson_id=lesson_id, difficulty=difficulty, mode=mode, rows=rows, commit=False
            )
            inserted += summary.inserted
            updated += summary.updated
            print(f"{difficulty} lesson {lesson_id} ({mode}): {summary.total} rows")
        db.commit()
    except Exception as exc:  # pragma: no cover - CLI feedback
        db.rollback()
        print(f"Error importing exercises: {exc}")
        raise
    finally:
        db.close()
    return inserted, updated


def main() -> None:
    parser = argparse.ArgumentParser(description="Import practice exercises from CSV")
    parser.add_argument("csv", help="Path to the CSV file")
    args = parser.parse_args()

    if not Path(args.csv).exists():
        raise SystemExit(f"File not found: {args.csv}")

    inserted, updated = import_csv(args.csv)
    print(f"Done. {inserted} inserted, {updated} updated.")


if __name__ == "__main__":
    main()
