"""Service layer package."""

from fluencyjet.services.auth import AuthService
from fluencyjet.services.billing import BillingService
from fluencyjet.services.content import ContentService
from fluencyjet.services.exercise_import import ExerciseImportService
from fluencyjet.services.leaderboard import LeaderboardService
from fluencyjet.services.users import UserService
from fluencyjet.services.xp_ledger import XpLedgerService

__all__ = [
    "AuthService",
    "BillingService",
    "ContentService",
    "ExerciseImportService",
    "LeaderboardService",
    "UserService",
    "XpLedgerService",
]
