"""Leaderboard aggregation over the XP ledger."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fluencyjet.core.xp_rules import day_start, month_start, week_start
from fluencyjet.db.models.user import User
from fluencyjet.db.models.xp import XpEvent
from fluencyjet.utils.exceptions import InvalidInputError

PERIODS: tuple[str, ...] = ("today", "weekly", "monthly", "all")


@dataclass(slots=True)
class LeaderboardEntry:
    rank: int
    user_id: uuid.UUID
    name: str | None
    total_xp: int


def period_start(period: str, now: datetime | None = None) -> datetime | None:
    """Start of the window for ``period``; ``None`` means all time."""

    if period == "all":
        return None
    starts = {"today": day_start, "weekly": week_start, "monthly": month_start}
    if period not in starts:
        raise InvalidInputError(
            f"Unknown leaderboard period: {period}", details={"allowed": list(PERIODS)}
        )
    return datetime.combine(starts[period](now), time.min, tzinfo=timezone.utc)


class LeaderboardService:
    """Rank users by XP earned within a window."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def top(self, period: str = "weekly", *, limit: int = 50, now: datetime | None = None) -> tuple[datetime | None, list[LeaderboardEntry]]:
        since = period_start(period, now)
        total = func.sum(XpEvent.xp_delta).label("total_xp")
        stmt = (
            select(User.id, User.name, total)
            .join(XpEvent, XpEvent.user_id == User.id)
            .where(User.is_active.is_(True))
            .group_by(User.id, User.name)
            .order_by(total.desc(), User.name.asc())
            .limit(limit)
        )
        if since is not None:
            stmt = stmt.where(XpEvent.created_at >= since)
        rows = self.db.execute(stmt).all()
        return since, [
            LeaderboardEntry(rank=index, user_id=row.id, name=row.name, total_xp=int(row.total_xp or 0))
            for index, row in enumerate(rows, start=1)
        ]
