"""API endpoint modules."""

from fluencyjet.api.endpoints import (
    admin,
    auth,
    billing,
    dashboard,
    health,
    leaderboard,
    lessons,
    me,
    quizzes,
    xp,
)

__all__ = [
    "admin",
    "auth",
    "billing",
    "dashboard",
    "health",
    "leaderboard",
    "lessons",
    "me",
    "quizzes",
    "xp",
]
