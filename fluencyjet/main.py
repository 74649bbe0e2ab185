"""FastAPI application factory."""
from __future__ import annotations

from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fluencyjet.api import api_router
from fluencyjet.config import settings
from fluencyjet.utils.exceptions import register_exception_handlers


tags_metadata: List[dict[str, str]] = [
    {"name": "auth", "description": "Sign up, log in and refresh tokens."},
    {"name": "me", "description": "Plan entitlements of the current user."},
    {"name": "xp", "description": "XP ledger: awards, balances and history."},
    {"name": "dashboard", "description": "Home screen XP summary."},
    {"name": "quizzes", "description": "Practice exercises behind the paywall."},
    {"name": "lessons", "description": "Lesson listing with lock state."},
    {"name": "leaderboard", "description": "XP rankings per period."},
    {"name": "admin", "description": "Content import and user access management."},
    {"name": "billing", "description": "Gateway orders and plan upgrades after payment."},
]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Gamified English sentence practice for Tamil speakers.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
