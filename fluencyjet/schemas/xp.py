"""Schemas for the XP ledger endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class XpAwardRequest(BaseModel):
    """Award payload. ``amount`` and ``event`` are validated by the ledger."""

    amount: Any = None
    event: Any = None
    meta: dict[str, Any] = Field(default_factory=dict)
    idempotency_key: Optional[str] = Field(default=None, max_length=128)


class XpLogRequest(BaseModel):
    """Legacy award payload."""

    xp_delta: Any = None
    event_type: Any = None
    meta: dict[str, Any] = Field(default_factory=dict)


class XpCommitRequest(BaseModel):
    """Practice attempt reported by the client; the server decides the XP."""

    attemptId: Optional[str] = None
    mode: str = "reorder"
    lessonId: Any = None
    questionId: Any = None
    isCorrect: bool = False
    attemptNo: int = 0
    timeTakenSec: Optional[float] = None


class XpEventRead(BaseModel):
    id: int
    event_type: str
    xp_delta: int
    meta: Optional[dict[str, Any]] = None
    idempotency_key: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BadgeRead(BaseModel):
    code: str
    label: str
    description: Optional[str] = None
    min_xp: int

    model_config = ConfigDict(from_attributes=True)


class OwnedBadgeRead(BadgeRead):
    awarded_at: datetime


class XpBalanceRead(BaseModel):
    week_xp: int
    month_xp: int
    lifetime_xp: int
    total_xp: int
    week_key: date
    month_key: date
    current_streak: int = 0
    longest_streak: int = 0
    badges: list[OwnedBadgeRead] = Field(default_factory=list)


class XpAwardResponse(BaseModel):
    ok: bool = True
    message: str = "XP awarded"
    idempotent: bool = False
    event: XpEventRead
    balance: XpBalanceRead
    new_badges: list[BadgeRead] = Field(default_factory=list)


class XpEventListResponse(BaseModel):
    ok: bool = True
    events: list[XpEventRead]


class XpCommitResponse(BaseModel):
    ok: bool = True
    idempotent: bool = False
    xpAwarded: int
    totalXP: int
    streak: int
    todayXP: int
    weeklyXP: int
    monthlyXP: int
    event: Optional[XpEventRead] = None


class DashboardSummaryResponse(BaseModel):
    ok: bool = True
    todayXP: int
    yesterdayXP: int
    weeklyXP: int
    totalXP: int
    streak: int
    longestStreak: int
    nextBadge: Optional[BadgeRead] = None
    recentActivity: list[XpEventRead] = Field(default_factory=list)
