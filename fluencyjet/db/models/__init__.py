"""Database models package."""
from fluencyjet.db.models.user import User
from fluencyjet.db.models.xp import Badge, PracticeAttempt, UserBadge, UserProgress, XpEvent
from fluencyjet.db.models.content import PracticeDay, PracticeExercise

__all__ = [
    "User",
    "XpEvent",
    "UserProgress",
    "Badge",
    "UserBadge",
    "PracticeAttempt",
    "PracticeDay",
    "PracticeExercise",
]
