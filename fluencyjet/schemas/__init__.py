"""Pydantic schemas package."""

from fluencyjet.schemas.user import (
    EntitlementsResponse,
    UserAccessUpdate,
    UserCreate,
    UserLogin,
    UserRead,
    UserUpdate,
)
from fluencyjet.schemas.auth import AuthResponse, RefreshRequest, Token, TokenPayload
from fluencyjet.schemas.xp import (
    BadgeRead,
    DashboardSummaryResponse,
    OwnedBadgeRead,
    XpAwardRequest,
    XpAwardResponse,
    XpBalanceRead,
    XpCommitRequest,
    XpCommitResponse,
    XpEventListResponse,
    XpEventRead,
    XpLogRequest,
)
from fluencyjet.schemas.quiz import (
    ExerciseRead,
    LessonListResponse,
    LessonQuizResponse,
    LessonRead,
    RandomQuizResponse,
)
from fluencyjet.schemas.leaderboard import LeaderboardEntryRead, LeaderboardResponse
from fluencyjet.schemas.admin import (
    AdminUserListResponse,
    AdminUserResponse,
    AdminXpAdjustRequest,
    BulkExerciseItem,
    BulkExerciseRequest,
    BulkExerciseResponse,
)
from fluencyjet.schemas.billing import (
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)

__all__ = [
    "EntitlementsResponse",
    "UserAccessUpdate",
    "UserCreate",
    "UserLogin",
    "UserRead",
    "UserUpdate",
    "AuthResponse",
    "RefreshRequest",
    "Token",
    "TokenPayload",
    "BadgeRead",
    "DashboardSummaryResponse",
    "OwnedBadgeRead",
    "XpAwardRequest",
    "XpAwardResponse",
    "XpBalanceRead",
    "XpCommitRequest",
    "XpCommitResponse",
    "XpEventListResponse",
    "XpEventRead",
    "XpLogRequest",
    "ExerciseRead",
    "LessonListResponse",
    "LessonQuizResponse",
    "LessonRead",
    "RandomQuizResponse",
    "LeaderboardEntryRead",
    "LeaderboardResponse",
    "AdminUserListResponse",
    "AdminUserResponse",
    "AdminXpAdjustRequest",
    "BulkExerciseItem",
    "BulkExerciseRequest",
    "BulkExerciseResponse",
    "CreateOrderRequest",
    "CreateOrderResponse",
    "VerifyPaymentRequest",
    "VerifyPaymentResponse",
]
