"""Practice content models."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from fluencyjet.db.base import Base


class PracticeDay(Base):
    """A numbered lesson ("day") within a level."""

    __tablename__ = "practice_days"
    __table_args__ = (
        UniqueConstraint("level", "day_number", name="uq_practice_days_level_day_number"),
    )

    id = Column(Integer, primary_key=True)
    level = Column(String(20), nullable=False, index=True)
    day_number = Column(Integer, nullable=False)
    title_en = Column(String(255))
    title_ta = Column(String(255))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    exercises = relationship(
        "PracticeExercise",
        back_populates="day",
        order_by="PracticeExercise.order_index",
        cascade="all, delete-orphan",
    )


class PracticeExercise(Base):
    """One exercise of a practice day; ``order_index`` sequences it within the day."""

    __tablename__ = "practice_exercises"
    __table_args__ = (
        UniqueConstraint(
            "practice_day_id", "type", "order_index", name="uq_practice_exercises_day_type_order"
        ),
    )

    id = Column(Integer, primary_key=True)
    practice_day_id = Column(
        Integer, ForeignKey("practice_days.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(20), nullable=False)
    prompt_ta = Column(Text, nullable=False)
    structure_en = Column(Text)
    expected = Column(JSONB().with_variant(JSON(), "sqlite"), default=dict)
    xp = Column(Integer, nullable=False, default=150)
    order_index = Column(Integer, nullable=False, default=0)

    day = relationship("PracticeDay", back_populates="exercises")

    def answer_words(self) -> list[str]:
        """Return the expected answer as a word list."""

        expected = self.expected or {}
        words = expected.get("words")
        if isinstance(words, list) and words:
            return [str(word) for word in words]
        sentence = expected.get("sentence") or expected.get("answer") or ""
        return str(sentence).split()
