"""Leaderboard endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fluencyjet.api.deps import get_current_user, get_db
from fluencyjet.db.models.user import User
from fluencyjet.schemas import LeaderboardEntryRead, LeaderboardResponse
from fluencyjet.services.leaderboard import LeaderboardService


router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
def get_leaderboard(
    period: str = Query("weekly", description="today | weekly | monthly | all"),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> LeaderboardResponse:
    """Users ranked by XP earned in the window."""

    since, entries = LeaderboardService(db).top(period, limit=limit)
    return LeaderboardResponse(
        period=period,
        since=since,
        top=[LeaderboardEntryRead.model_validate(entry) for entry in entries],
    )
