"""XP ledger: append-only events plus the per-user aggregate."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy import case, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from fluencyjet.config import settings
from fluencyjet.core.xp_rules import (
    BADGE_THRESHOLDS,
    BadgeThreshold,
    XpEventType,
    attempt_reward,
    day_start,
    lookup_event_type,
    month_start,
    next_streak,
    normalize_event_type,
    parse_amount,
    period_bounds,
    week_start,
)
from fluencyjet.db.models.xp import Badge, PracticeAttempt, UserBadge, UserProgress, XpEvent
from fluencyjet.utils.exceptions import (
    ConflictError,
    InvalidAmountError,
    InvalidEventTypeError,
    InvalidInputError,
    StorageUnavailableError,
)

RECENT_EVENTS_DEFAULT = 50
RECENT_EVENTS_MAX = 200
RECENT_ACTIVITY_LIMIT = 10


@dataclass(slots=True)
class Balance:
    week_xp: int
    month_xp: int
    lifetime_xp: int
    total_xp: int
    week_key: date
    month_key: date
    current_streak: int = 0
    longest_streak: int = 0
    badges: list[UserBadge] = field(default_factory=list)


@dataclass(slots=True)
class AwardResult:
    event: XpEvent
    balance: Balance
    new_badges: list[Badge]
    idempotent: bool = False


@dataclass(slots=True)
class DashboardSummary:
    today_xp: int
    yesterday_xp: int
    weekly_xp: int
    total_xp: int
    streak: int
    longest_streak: int
    next_badge: BadgeThreshold | None
    recent_activity: list[XpEvent]


@dataclass(slots=True)
class CommitResult:
    xp_awarded: int
    total_xp: int
    streak: int
    today_xp: int
    weekly_xp: int
    monthly_xp: int
    event: XpEvent | None
    idempotent: bool = False


class XpLedgerService:
    """Record XP and keep the weekly, monthly and lifetime views in step.

    Every award runs in one transaction: the ledger row, the aggregate
    increment and any badge unlock commit together or not at all. Aggregates
    are incremented in SQL (``col = col + delta``) so concurrent awards for
    the same user never overwrite each other.
    """

    def __init__(self, db: Session, *, strict_event_types: bool | None = None) -> None:
        self.db = db
        self.strict_event_types = (
            settings.XP_STRICT_EVENT_TYPES if strict_event_types is None else strict_event_types
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _insert(self, model: Any):
        if self.db.get_bind().dialect.name == "postgresql":
            return pg_insert(model)
        return sqlite_insert(model)

    def _ensure_progress_row(self, user_id: uuid.UUID) -> None:
        stmt = (
            self._insert(UserProgress)
            .values(
                user_id=user_id,
                week_xp=0,
                month_xp=0,
                lifetime_xp=0,
                total_xp=0,
                current_streak=0,
                longest_streak=0,
                week_key=week_start(),
                month_key=month_start(),
            )
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        self.db.execute(stmt)

    def _resolve_event_type(self, value: Any) -> XpEventType:
        if self.strict_event_types:
            event_type = lookup_event_type(value)
            if event_type is None:
                raise InvalidEventTypeError(
                    f"Unknown XP event type: {value!r}",
                    details={"allowed": [e.value for e in XpEventType]},
                )
            return event_type
        return normalize_event_type(value)

    def _existing_event(self, user_id: uuid.UUID, idempotency_key: str) -> XpEvent | None:
        stmt = select(XpEvent).where(
            XpEvent.user_id == user_id, XpEvent.idempotency_key == idempotency_key
        )
        return self.db.scalars(stmt).first()

    def _ensure_badge_catalog(self) -> None:
        for threshold in BADGE_THRESHOLDS:
            stmt = (
                self._insert(Badge)
                .values(
                    code=threshold.code,
                    label=threshold.label,
                    description=threshold.description,
                    min_xp=threshold.min_xp,
                )
                .on_conflict_do_nothing(index_elements=["code"])
            )
            self.db.execute(stmt)

    def _award_badges(self, user_id: uuid.UUID, lifetime_xp: int) -> list[Badge]:
        eligible = [t for t in BADGE_THRESHOLDS if lifetime_xp >= t.min_xp]
        if not eligible:
            return []
        self._ensure_badge_catalog()
        owned = set(
            self.db.scalars(
                select(Badge.code)
                .join(UserBadge, UserBadge.badge_id == Badge.id)
                .where(UserBadge.user_id == user_id)
            )
        )
        badges = self.db.scalars(
            select(Badge).where(Badge.code.in_([t.code for t in eligible]))
        ).all()
        new_badges: list[Badge] = []
        for badge in badges:
            if badge.code in owned:
                continue
            stmt = (
                self._insert(UserBadge)
                .values(user_id=user_id, badge_id=badge.id, awarded_at=datetime.now(timezone.utc))
                .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
            )
            self.db.execute(stmt)
            new_badges.append(badge)
        if new_badges:
            logger.info(
                f"Unlocked badges {[b.code for b in new_badges]} for user {user_id}"
            )
        return new_badges

    def _read_balance(self, user_id: uuid.UUID, *, now: datetime | None = None) -> Balance:
        progress = self.db.get(UserProgress, user_id, populate_existing=True)
        current_week = week_start(now)
        current_month = month_start(now)
        badges = list(
            self.db.scalars(
                select(UserBadge)
                .where(UserBadge.user_id == user_id)
                .order_by(UserBadge.awarded_at.asc())
            ).unique()
        )
        # Counters keyed to an earlier period are stale until the next write re-keys them.
        week_xp = progress.week_xp if progress.week_key == current_week else 0
        month_xp = progress.month_xp if progress.month_key == current_month else 0
        return Balance(
            week_xp=week_xp,
            month_xp=month_xp,
            lifetime_xp=progress.lifetime_xp,
            total_xp=progress.total_xp,
            week_key=current_week,
            month_key=current_month,
            current_streak=progress.current_streak,
            longest_streak=progress.longest_streak,
            badges=badges,
        )

    def _sum_between(self, user_id: uuid.UUID, start: datetime, end: datetime) -> int:
        stmt = select(func.coalesce(func.sum(XpEvent.xp_delta), 0)).where(
            XpEvent.user_id == user_id,
            XpEvent.created_at >= start,
            XpEvent.created_at < end,
        )
        return int(self.db.scalar(stmt) or 0)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def award(
        self,
        user_id: uuid.UUID,
        amount: Any,
        event_type: Any = None,
        meta: dict[str, Any] | None = None,
        *,
        idempotency_key: str | None = None,
        now: datetime | None = None,
    ) -> AwardResult:
        """Append one ledger event and increment the user's aggregates."""

        delta = parse_amount(amount)
        if delta is None or delta == 0:
            raise InvalidAmountError("Invalid XP amount", details={"amount": amount})
        kind = self._resolve_event_type(event_type)
        if idempotency_key is not None:
            idempotency_key = str(idempotency_key).strip() or None
        if idempotency_key is not None and len(idempotency_key) > 128:
            raise InvalidInputError("idempotency_key must be at most 128 characters")

        now = now or datetime.now(timezone.utc)
        try:
            if idempotency_key:
                existing = self._existing_event(user_id, idempotency_key)
                if existing is not None:
                    return self._replay(existing, now=now)

            event = self._write(user_id, delta, kind, meta or {}, idempotency_key, now)
            progress_xp = self.db.scalar(
                select(UserProgress.lifetime_xp).where(UserProgress.user_id == user_id)
            )
            new_badges = self._award_badges(user_id, int(progress_xp or 0))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self._existing_event(user_id, idempotency_key) if idempotency_key else None
            if existing is None:
                raise
            return self._replay(existing, now=now)
        except DBAPIError as exc:
            self.db.rollback()
            logger.error(f"XP award failed for user {user_id}: {exc}")
            raise StorageUnavailableError("XP could not be recorded. Please try again.") from exc

        logger.info(f"Awarded {delta} XP ({kind.value}) to user {user_id}")
        return AwardResult(
            event=event,
            balance=self._read_balance(user_id, now=now),
            new_badges=new_badges,
        )

    def _write(
        self,
        user_id: uuid.UUID,
        delta: int,
        kind: XpEventType,
        meta: dict[str, Any],
        idempotency_key: str | None,
        now: datetime,
    ) -> XpEvent:
        event = XpEvent(
            user_id=user_id,
            event_type=kind.value,
            xp_delta=delta,
            meta=meta,
            idempotency_key=idempotency_key,
            created_at=now,
        )
        self.db.add(event)
        self.db.flush()

        self._ensure_progress_row(user_id)
        wk, mk = week_start(now), month_start(now)
        self.db.execute(
            update(UserProgress)
            .where(UserProgress.user_id == user_id)
            .values(
                week_xp=case(
                    (UserProgress.week_key == wk, UserProgress.week_xp + delta), else_=delta
                ),
                month_xp=case(
                    (UserProgress.month_key == mk, UserProgress.month_xp + delta), else_=delta
                ),
                week_key=wk,
                month_key=mk,
                lifetime_xp=UserProgress.lifetime_xp + delta,
                total_xp=UserProgress.total_xp + delta,
                last_activity=now,
            )
            .execution_options(synchronize_session=False)
        )
        return event

    def _replay(self, event: XpEvent, *, now: datetime) -> AwardResult:
        logger.info(f"Replayed XP event {event.id} for key {event.idempotency_key!r}")
        return AwardResult(
            event=event,
            balance=self._read_balance(event.user_id, now=now),
            new_badges=[],
            idempotent=True,
        )

    def balance(self, user_id: uuid.UUID, *, now: datetime | None = None) -> Balance:
        """Return the user's XP views, creating a zeroed row for new users."""

        try:
            self._ensure_progress_row(user_id)
            self.db.commit()
            return self._read_balance(user_id, now=now)
        except DBAPIError as exc:
            self.db.rollback()
            logger.error(f"XP balance failed for user {user_id}: {exc}")
            raise StorageUnavailableError("XP balance is temporarily unavailable.") from exc

    def recent_events(self, user_id: uuid.UUID, limit: int | None = None) -> list[XpEvent]:
        """Return the newest ledger rows first."""

        limit = RECENT_EVENTS_DEFAULT if limit is None else int(limit)
        limit = max(1, min(RECENT_EVENTS_MAX, limit))
        stmt = (
            select(XpEvent)
            .where(XpEvent.user_id == user_id)
            .order_by(XpEvent.created_at.desc(), XpEvent.id.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def dashboard(self, user_id: uuid.UUID, *, now: datetime | None = None) -> DashboardSummary:
        """Today, yesterday and last-seven-days XP with the latest activity.

        Days are UTC calendar days; the seven-day window includes today.
        """

        now = now or datetime.now(timezone.utc)
        balance = self.balance(user_id, now=now)
        today_from, today_to = period_bounds(day_start(now), days=1)
        next_badge = next(
            (t for t in BADGE_THRESHOLDS if t.min_xp > balance.lifetime_xp), None
        )
        return DashboardSummary(
            today_xp=self._sum_between(user_id, today_from, today_to),
            yesterday_xp=self._sum_between(user_id, today_from - timedelta(days=1), today_from),
            weekly_xp=self._sum_between(user_id, today_from - timedelta(days=6), today_to),
            total_xp=balance.total_xp,
            streak=balance.current_streak,
            longest_streak=balance.longest_streak,
            next_badge=next_badge,
            recent_activity=self.recent_events(user_id, RECENT_ACTIVITY_LIMIT),
        )

    def commit_attempt(
        self,
        user_id: uuid.UUID,
        *,
        attempt_id: str,
        mode: str = "reorder",
        is_correct: bool = False,
        attempt_no: Any = 0,
        lesson_id: Any = None,
        question_id: Any = None,
        time_taken_sec: Any = None,
        now: datetime | None = None,
    ) -> CommitResult:
        """Score a practice attempt server-side and record it at most once.

        The attempt row, the streak step and any XP event share one
        transaction, so a repeated ``attempt_id`` replays the stored outcome
        whether or not the first commit earned XP.
        """

        if not str(attempt_id or "").strip():
            raise InvalidInputError("attemptId is required")
        attempt_id = str(attempt_id).strip()
        if len(attempt_id) > 128:
            raise InvalidInputError("attemptId must be at most 128 characters")
        now = now or datetime.now(timezone.utc)

        existing = self._existing_attempt(user_id, attempt_id)
        if existing is not None:
            return self._replay_attempt(existing, now)

        xp_awarded = attempt_reward(is_correct=is_correct, attempt_no=attempt_no)
        meta = {
            "mode": mode,
            "lessonId": lesson_id,
            "questionId": question_id,
            "attemptNo": attempt_no,
            "timeTakenSec": time_taken_sec,
        }
        event = None
        try:
            claimed = self.db.execute(
                self._insert(PracticeAttempt)
                .values(
                    user_id=user_id,
                    attempt_id=attempt_id,
                    mode=mode,
                    is_correct=bool(is_correct),
                    xp_awarded=xp_awarded,
                    meta=meta,
                    created_at=now,
                )
                .on_conflict_do_nothing(index_elements=["user_id", "attempt_id"])
            ).rowcount
            if not claimed:
                self.db.rollback()
                return self._replay_attempt(self._existing_attempt(user_id, attempt_id), now)

            streak = self._touch_streak(user_id, now)
            if xp_awarded:
                event = self._write(
                    user_id, xp_awarded, XpEventType.QUESTION_CORRECT, meta, attempt_id, now
                )
                lifetime_xp = self.db.scalar(
                    select(UserProgress.lifetime_xp).where(UserProgress.user_id == user_id)
                )
                self._award_badges(user_id, int(lifetime_xp or 0))
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            existing = self._existing_attempt(user_id, attempt_id)
            if existing is None:
                raise ConflictError("attemptId is already used by another XP award") from exc
            return self._replay_attempt(existing, now)
        except DBAPIError as exc:
            self.db.rollback()
            logger.error(f"Attempt {attempt_id} could not be saved for user {user_id}: {exc}")
            raise StorageUnavailableError("Progress could not be saved. Please try again.") from exc

        logger.info(f"Attempt {attempt_id} scored {xp_awarded} XP for user {user_id}, streak {streak}")
        return self._commit_result(user_id, xp_awarded, event, now, idempotent=False)

    def _existing_attempt(self, user_id: uuid.UUID, attempt_id: str) -> PracticeAttempt | None:
        stmt = select(PracticeAttempt).where(
            PracticeAttempt.user_id == user_id, PracticeAttempt.attempt_id == attempt_id
        )
        return self.db.scalars(stmt).first()

    def _replay_attempt(self, attempt: PracticeAttempt, now: datetime) -> CommitResult:
        event = (
            self._existing_event(attempt.user_id, attempt.attempt_id) if attempt.xp_awarded else None
        )
        logger.info(f"Replayed attempt {attempt.attempt_id!r} for user {attempt.user_id}")
        return self._commit_result(attempt.user_id, attempt.xp_awarded, event, now, idempotent=True)

    def _touch_streak(self, user_id: uuid.UUID, now: datetime) -> int:
        self._ensure_progress_row(user_id)
        progress = self.db.scalars(
            select(UserProgress)
            .where(UserProgress.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).one()
        today = now.astimezone(ZoneInfo(settings.STREAK_TIMEZONE)).date()
        streak = next_streak(progress.current_streak, progress.last_active_date, today)
        progress.current_streak = streak
        progress.longest_streak = max(progress.longest_streak, streak)
        progress.last_active_date = today
        progress.last_activity = now
        return streak

    def _commit_result(
        self,
        user_id: uuid.UUID,
        xp_awarded: int,
        event: XpEvent | None,
        now: datetime,
        *,
        idempotent: bool,
    ) -> CommitResult:
        balance = self._read_balance(user_id, now=now)
        today_from, today_to = period_bounds(day_start(now), days=1)
        week_from, week_to = period_bounds(week_start(now), days=7)
        month_from, month_to = period_bounds(month_start(now), months=1)
        return CommitResult(
            xp_awarded=xp_awarded,
            total_xp=balance.total_xp,
            streak=balance.current_streak,
            today_xp=self._sum_between(user_id, today_from, today_to),
            weekly_xp=self._sum_between(user_id, week_from, week_to),
            monthly_xp=self._sum_between(user_id, month_from, month_to),
            event=event,
            idempotent=idempotent,
        )
