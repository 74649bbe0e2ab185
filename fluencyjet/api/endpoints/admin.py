"""Admin endpoints: content import, user access and XP adjustments."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fluencyjet.api.deps import get_current_admin, get_db, get_xp_ledger
from fluencyjet.api.endpoints.xp import award_response
from fluencyjet.core.xp_rules import XpEventType
from fluencyjet.db.models.user import User
from fluencyjet.schemas import (
    AdminUserListResponse,
    AdminUserResponse,
    AdminXpAdjustRequest,
    BulkExerciseRequest,
    BulkExerciseResponse,
    UserAccessUpdate,
    UserRead,
    XpAwardResponse,
)
from fluencyjet.services.exercise_import import ExerciseImportService, ExerciseRow, parse_text_rows
from fluencyjet.services.users import UserService
from fluencyjet.services.xp_ledger import XpLedgerService


router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/exercises/bulk", response_model=BulkExerciseResponse)
def bulk_import_exercises(
    payload: BulkExerciseRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
) -> BulkExerciseResponse:
    """Upsert a lesson's exercises keyed by lesson, type and order index."""

    if payload.exercises:
        rows = [
            ExerciseRow(
                tamil=item.tamil.strip(),
                english=item.english.strip(),
                order_index=item.order_index if item.order_index is not None else index,
                xp=item.xp if item.xp is not None else payload.xp,
                structure_en=item.structure_en,
            )
            for index, item in enumerate(payload.exercises)
        ]
    else:
        rows = parse_text_rows(payload.text or "", xp=payload.xp)

    summary = ExerciseImportService(db).import_rows(
        lesson_id=payload.lessonId,
        difficulty=payload.difficulty,
        mode=payload.mode,
        rows=rows,
        title_en=payload.title,
    )
    return BulkExerciseResponse(
        lesson_id=summary.lesson_id,
        difficulty=summary.level.lower(),
        mode=summary.mode,
        inserted=summary.inserted,
        updated=summary.updated,
    )


@router.get("/users", response_model=AdminUserListResponse)
def list_users(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
) -> AdminUserListResponse:
    users = UserService(db).list_users(limit=limit, offset=offset)
    return AdminUserListResponse(users=[UserRead.model_validate(u) for u in users])


@router.get("/users/{user_id}", response_model=AdminUserResponse)
def get_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
) -> AdminUserResponse:
    user = UserService(db).get(user_id)
    return AdminUserResponse(user=UserRead.model_validate(user))


@router.patch("/users/{user_id}/access", response_model=AdminUserResponse)
def update_user_access(
    user_id: uuid.UUID,
    payload: UserAccessUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
) -> AdminUserResponse:
    """Change a user's plan, tier or access override."""

    user = UserService(db).update_access(user_id, payload)
    return AdminUserResponse(message="User access updated", user=UserRead.model_validate(user))


@router.post("/users/{user_id}/xp", response_model=XpAwardResponse)
def adjust_user_xp(
    user_id: uuid.UUID,
    payload: AdminXpAdjustRequest,
    db: Session = Depends(get_db),
    ledger: XpLedgerService = Depends(get_xp_ledger),
    admin: User = Depends(get_current_admin),
) -> XpAwardResponse:
    """Record an ADMIN_ADJUST ledger entry for a user."""

    UserService(db).get(user_id)
    result = ledger.award(
        user_id,
        payload.amount,
        XpEventType.ADMIN_ADJUST,
        {"reason": payload.reason, "admin_id": str(admin.id)},
    )
    return award_response(result, "XP adjusted")
