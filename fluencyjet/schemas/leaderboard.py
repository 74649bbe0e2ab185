"""Leaderboard schemas."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LeaderboardEntryRead(BaseModel):
    rank: int
    user_id: uuid.UUID
    name: Optional[str] = None
    total_xp: int

    model_config = ConfigDict(from_attributes=True)


class LeaderboardResponse(BaseModel):
    ok: bool = True
    period: str
    since: Optional[datetime] = None
    top: list[LeaderboardEntryRead]
