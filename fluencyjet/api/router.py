"""Top-level API router."""
from fastapi import APIRouter

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


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(me.router)
api_router.include_router(xp.router)
api_router.include_router(dashboard.router)
api_router.include_router(quizzes.router)
api_router.include_router(lessons.router)
api_router.include_router(leaderboard.router)
api_router.include_router(admin.router)
api_router.include_router(billing.router)
