"""Home screen summary."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from fluencyjet.api.deps import get_current_user, get_xp_ledger
from fluencyjet.db.models.user import User
from fluencyjet.schemas import BadgeRead, DashboardSummaryResponse, XpEventRead
from fluencyjet.services.xp_ledger import XpLedgerService


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=DashboardSummaryResponse)
def get_summary(
    current_user: User = Depends(get_current_user),
    ledger: XpLedgerService = Depends(get_xp_ledger),
) -> DashboardSummaryResponse:
    """Recent XP, streak, next badge and the latest ledger rows."""

    summary = ledger.dashboard(current_user.id)
    return DashboardSummaryResponse(
        todayXP=summary.today_xp,
        yesterdayXP=summary.yesterday_xp,
        weeklyXP=summary.weekly_xp,
        totalXP=summary.total_xp,
        streak=summary.streak,
        longestStreak=summary.longest_streak,
        nextBadge=BadgeRead.model_validate(summary.next_badge) if summary.next_badge else None,
        recentActivity=[XpEventRead.model_validate(e) for e in summary.recent_activity],
    )
