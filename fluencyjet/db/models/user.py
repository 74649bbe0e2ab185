"""User database model."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from fluencyjet.db.base import Base


class User(Base):
    """Represents a learner or admin account."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255))

    # Plan / paywall
    plan = Column(String(20), nullable=False, default="FREE")
    tier_level = Column(String(20), nullable=False, default="free")
    has_access = Column(Boolean, nullable=False, default=False)
    track = Column(String(20))  # placement: BEGINNER | INTERMEDIATE

    is_admin = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def activate_plan(self, plan: str, *, full_access: bool) -> None:
        """Switch the user onto a paid plan."""

        self.plan = plan.upper()
        self.tier_level = plan.lower()
        if full_access:
            self.has_access = True
