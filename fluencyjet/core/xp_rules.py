"""Pure XP rules: event classification, amount parsing, periods and rewards."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any

MAX_XP_DELTA = 100_000


class XpEventType(str, Enum):
    """Canonical ledger event kinds."""

    QUESTION_CORRECT = "QUESTION_CORRECT"
    QUIZ_COMPLETED = "QUIZ_COMPLETED"
    LESSON_COMPLETED = "LESSON_COMPLETED"
    DAILY_STREAK = "DAILY_STREAK"
    BADGE_UNLOCK = "BADGE_UNLOCK"
    ADMIN_ADJUST = "ADMIN_ADJUST"
    GENERIC = "GENERIC"


EVENT_ALIASES: dict[str, XpEventType] = {
    "generic": XpEventType.GENERIC,
    "default": XpEventType.GENERIC,
    "question_correct": XpEventType.QUESTION_CORRECT,
    "correct": XpEventType.QUESTION_CORRECT,
    "quiz_completed": XpEventType.QUIZ_COMPLETED,
    "quiz_complete": XpEventType.QUIZ_COMPLETED,
    "lesson_completed": XpEventType.LESSON_COMPLETED,
    "daily_streak": XpEventType.DAILY_STREAK,
    "streak": XpEventType.DAILY_STREAK,
    "badge_unlock": XpEventType.BADGE_UNLOCK,
    "admin_adjust": XpEventType.ADMIN_ADJUST,
    "admin": XpEventType.ADMIN_ADJUST,
}

_SEPARATORS = re.compile(r"[\s-]+")


def _raw_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value or "")


def _alias_key(value: Any) -> str:
    return _SEPARATORS.sub("_", _raw_value(value).strip().lower())


def lookup_event_type(value: Any) -> XpEventType | None:
    """Return the canonical event type for ``value`` or ``None`` if it is unknown."""

    if isinstance(value, XpEventType):
        return value
    alias = EVENT_ALIASES.get(_alias_key(value))
    if alias is not None:
        return alias
    upper = _raw_value(value).strip().upper()
    try:
        return XpEventType(upper)
    except ValueError:
        return None


def normalize_event_type(value: Any) -> XpEventType:
    """Map free-form client input onto an event type; unknown values become GENERIC."""

    return lookup_event_type(value) or XpEventType.GENERIC


def parse_amount(value: Any) -> int | None:
    """Truncate and clamp an XP amount; ``None`` when it is not a finite number."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return max(-MAX_XP_DELTA, min(MAX_XP_DELTA, math.trunc(number)))


# ----------------------------------------------------------------------
# Periods
# ----------------------------------------------------------------------
def week_start(moment: datetime | None = None) -> date:
    """Monday of the UTC week containing ``moment``."""

    moment = moment or datetime.now(timezone.utc)
    day = moment.astimezone(timezone.utc).date() if moment.tzinfo else moment.date()
    return day - timedelta(days=day.weekday())


def month_start(moment: datetime | None = None) -> date:
    """First day of the UTC month containing ``moment``."""

    moment = moment or datetime.now(timezone.utc)
    day = moment.astimezone(timezone.utc).date() if moment.tzinfo else moment.date()
    return day.replace(day=1)


def day_start(moment: datetime | None = None) -> date:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).date() if moment.tzinfo else moment.date()


def period_bounds(start: date, *, days: int | None = None, months: int = 0) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` as UTC datetimes for a day/week span or a month."""

    begin = datetime.combine(start, time.min, tzinfo=timezone.utc)
    if days is not None:
        return begin, begin + timedelta(days=days)
    year = start.year + (start.month - 1 + months) // 12
    month = (start.month - 1 + months) % 12 + 1
    return begin, datetime.combine(date(year, month, 1), time.min, tzinfo=timezone.utc)


# ----------------------------------------------------------------------
# Rewards
# ----------------------------------------------------------------------
ATTEMPT_REWARDS = {1: 150, 2: 100, 3: 50}


def attempt_reward(*, is_correct: bool, attempt_no: Any) -> int:
    """XP for a practice attempt: fewer tries earn more, wrong answers earn nothing."""

    if not is_correct:
        return 0
    try:
        attempt = int(attempt_no or 0)
    except (TypeError, ValueError):
        return 0
    return ATTEMPT_REWARDS.get(attempt, 0)


@dataclass(frozen=True)
class BadgeThreshold:
    code: str
    label: str
    description: str
    min_xp: int


BADGE_THRESHOLDS: tuple[BadgeThreshold, ...] = (
    BadgeThreshold("BRONZE_1K", "Bronze Achiever", "Reached 1,000 XP", 1_000),
    BadgeThreshold("SILVER_5K", "Silver Achiever", "Reached 5,000 XP", 5_000),
    BadgeThreshold("GOLD_10K", "Gold Achiever", "Reached 10,000 XP", 10_000),
)


def next_streak(current: int, last_active: date | None, today: date) -> int:
    """Streak after activity on ``today`` given the previous active day."""

    if last_active == today:
        return max(current, 1)
    if last_active == today - timedelta(days=1):
        return current + 1
    return 1
