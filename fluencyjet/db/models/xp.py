"""XP ledger, aggregate, and badge models."""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from fluencyjet.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class XpEvent(Base):
    """Append-only XP ledger row. Never updated or deleted."""

    __tablename__ = "xp_events"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_xp_events_user_idempotency_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type = Column(String(32), nullable=False, default="GENERIC")
    xp_delta = Column(Integer, nullable=False)
    meta = Column(JSONB().with_variant(JSON(), "sqlite"), default=dict)
    idempotency_key = Column(String(128))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = relationship("User", backref="xp_events")


class UserProgress(Base):
    """Per-user XP aggregate, incremented alongside every ledger write."""

    __tablename__ = "user_progress"

    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    week_xp = Column(Integer, nullable=False, default=0)
    month_xp = Column(Integer, nullable=False, default=0)
    lifetime_xp = Column(Integer, nullable=False, default=0)
    total_xp = Column(Integer, nullable=False, default=0)
    week_key = Column(Date)
    month_key = Column(Date)

    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_active_date = Column(Date)
    last_activity = Column(DateTime(timezone=True))

    user = relationship("User", backref="progress")


class Badge(Base):
    """XP threshold badge definition."""

    __tablename__ = "badges"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False)
    label = Column(String(255), nullable=False)
    description = Column(Text)
    min_xp = Column(Integer, nullable=False, default=0)

    user_badges = relationship("UserBadge", back_populates="badge")


class UserBadge(Base):
    """Badge owned by a user."""

    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    badge_id = Column(Integer, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    awarded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    badge = relationship("Badge", back_populates="user_badges", lazy="joined")


class PracticeAttempt(Base):
    """One scored practice attempt, kept even when it earned no XP."""

    __tablename__ = "practice_attempts"
    __table_args__ = (
        UniqueConstraint("user_id", "attempt_id", name="uq_practice_attempts_user_attempt"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attempt_id = Column(String(128), nullable=False)
    mode = Column(String(32), nullable=False, default="reorder")
    is_correct = Column(Boolean, nullable=False, default=False)
    xp_awarded = Column(Integer, nullable=False, default=0)
    meta = Column(JSONB().with_variant(JSON(), "sqlite"), default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
