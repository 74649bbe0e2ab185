"""XP ledger endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from fluencyjet.api.deps import get_current_user, get_xp_ledger
from fluencyjet.db.models.user import User
from fluencyjet.schemas import (
    BadgeRead,
    OwnedBadgeRead,
    XpAwardRequest,
    XpAwardResponse,
    XpBalanceRead,
    XpCommitRequest,
    XpCommitResponse,
    XpEventListResponse,
    XpEventRead,
    XpLogRequest,
)
from fluencyjet.services.xp_ledger import AwardResult, Balance, XpLedgerService


router = APIRouter(prefix="/xp", tags=["xp"])


def balance_read(balance: Balance) -> XpBalanceRead:
    return XpBalanceRead(
        week_xp=balance.week_xp,
        month_xp=balance.month_xp,
        lifetime_xp=balance.lifetime_xp,
        total_xp=balance.total_xp,
        week_key=balance.week_key,
        month_key=balance.month_key,
        current_streak=balance.current_streak,
        longest_streak=balance.longest_streak,
        badges=[
            OwnedBadgeRead(
                code=owned.badge.code,
                label=owned.badge.label,
                description=owned.badge.description,
                min_xp=owned.badge.min_xp,
                awarded_at=owned.awarded_at,
            )
            for owned in balance.badges
        ],
    )


def award_response(result: AwardResult, message: str) -> XpAwardResponse:
    return XpAwardResponse(
        message=message,
        idempotent=result.idempotent,
        event=XpEventRead.model_validate(result.event),
        balance=balance_read(result.balance),
        new_badges=[BadgeRead.model_validate(b) for b in result.new_badges],
    )


@router.get("/balance", response_model=XpBalanceRead)
def get_balance(
    current_user: User = Depends(get_current_user),
    ledger: XpLedgerService = Depends(get_xp_ledger),
) -> XpBalanceRead:
    """Current week, month, lifetime and total XP."""

    return balance_read(ledger.balance(current_user.id))


@router.post("/award", response_model=XpAwardResponse)
def award_xp(
    payload: XpAwardRequest,
    current_user: User = Depends(get_current_user),
    ledger: XpLedgerService = Depends(get_xp_ledger),
) -> XpAwardResponse:
    """Append an XP event and increment the aggregates."""

    result = ledger.award(
        current_user.id,
        payload.amount,
        payload.event,
        payload.meta,
        idempotency_key=payload.idempotency_key,
    )
    return award_response(result, "XP awarded")


@router.post("/log", response_model=XpAwardResponse)
def log_xp(
    payload: XpLogRequest,
    current_user: User = Depends(get_current_user),
    ledger: XpLedgerService = Depends(get_xp_ledger),
) -> XpAwardResponse:
    """Older clients send ``xp_delta``/``event_type``; same ledger write."""

    result = ledger.award(current_user.id, payload.xp_delta, payload.event_type, payload.meta)
    return award_response(result, "XP logged")


@router.post("/commit", response_model=XpCommitResponse)
def commit_attempt(
    payload: XpCommitRequest,
    current_user: User = Depends(get_current_user),
    ledger: XpLedgerService = Depends(get_xp_ledger),
) -> XpCommitResponse:
    """Score a practice attempt server-side; repeated attempt ids are not re-credited."""

    result = ledger.commit_attempt(
        current_user.id,
        attempt_id=payload.attemptId,
        mode=payload.mode,
        is_correct=payload.isCorrect,
        attempt_no=payload.attemptNo,
        lesson_id=payload.lessonId,
        question_id=payload.questionId,
        time_taken_sec=payload.timeTakenSec,
    )
    return XpCommitResponse(
        idempotent=result.idempotent,
        xpAwarded=result.xp_awarded,
        totalXP=result.total_xp,
        streak=result.streak,
        todayXP=result.today_xp,
        weeklyXP=result.weekly_xp,
        monthlyXP=result.monthly_xp,
        event=XpEventRead.model_validate(result.event) if result.event else None,
    )


@router.get("/events", response_model=XpEventListResponse)
def list_events(
    limit: int = Query(50, description="Maximum number of events to return (clamped to 1..200)"),
    current_user: User = Depends(get_current_user),
    ledger: XpLedgerService = Depends(get_xp_ledger),
) -> XpEventListResponse:
    """Recent ledger rows, newest first."""

    events = ledger.recent_events(current_user.id, limit)
    return XpEventListResponse(events=[XpEventRead.model_validate(e) for e in events])
