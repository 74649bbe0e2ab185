"""Create users, XP ledger and practice content tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("plan", sa.String(length=20), server_default=sa.text("'FREE'"), nullable=False),
        sa.Column("tier_level", sa.String(length=20), server_default=sa.text("'free'"), nullable=False),
        sa.Column("has_access", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("track", sa.String(length=20), nullable=True),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "xp_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_xp_events_user_id_users"),
            nullable=False,
        ),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("xp_delta", sa.Integer(), nullable=False),
        sa.Column("meta", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("idempotency_key", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "idempotency_key", name="uq_xp_events_user_idempotency_key"),
    )
    op.create_index("ix_xp_events_user_id", "xp_events", ["user_id"], unique=False)
    op.create_index("ix_xp_events_created_at", "xp_events", ["created_at"], unique=False)

    op.create_table(
        "user_progress",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_user_progress_user_id_users"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("week_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("month_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("lifetime_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("week_key", sa.Date(), nullable=True),
        sa.Column("month_key", sa.Date(), nullable=True),
        sa.Column("current_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("longest_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_active_date", sa.Date(), nullable=True),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "badges",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("min_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
    )
    op.create_unique_constraint("uq_badges_code", "badges", ["code"])

    op.create_table(
        "user_badges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_user_badges_user_id_users"),
            nullable=False,
        ),
        sa.Column(
            "badge_id",
            sa.Integer(),
            sa.ForeignKey("badges.id", ondelete="CASCADE", name="fk_user_badges_badge_id_badges"),
            nullable=False,
        ),
        sa.Column("awarded_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )
    op.create_index("ix_user_badges_user_id", "user_badges", ["user_id"], unique=False)

    op.create_table(
        "practice_days",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("level", sa.String(length=20), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("title_en", sa.String(length=255), nullable=True),
        sa.Column("title_ta", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.UniqueConstraint("level", "day_number", name="uq_practice_days_level_day_number"),
    )
    op.create_index("ix_practice_days_level", "practice_days", ["level"], unique=False)

    op.create_table(
        "practice_exercises",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "practice_day_id",
            sa.Integer(),
            sa.ForeignKey(
                "practice_days.id",
                ondelete="CASCADE",
                name="fk_practice_exercises_practice_day_id_practice_days",
            ),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("prompt_ta", sa.Text(), nullable=False),
        sa.Column("structure_en", sa.Text(), nullable=True),
        sa.Column("expected", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("xp", sa.Integer(), server_default=sa.text("150"), nullable=False),
        sa.Column("order_index", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.UniqueConstraint(
            "practice_day_id", "type", "order_index", name="uq_practice_exercises_day_type_order"
        ),
    )
    op.create_index(
        "ix_practice_exercises_practice_day_id", "practice_exercises", ["practice_day_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_practice_exercises_practice_day_id", table_name="practice_exercises")
    op.drop_table("practice_exercises")

    op.drop_index("ix_practice_days_level", table_name="practice_days")
    op.drop_table("practice_days")

    op.drop_index("ix_user_badges_user_id", table_name="user_badges")
    op.drop_table("user_badges")

    op.drop_constraint("uq_badges_code", "badges", type_="unique")
    op.drop_table("badges")

    op.drop_table("user_progress")

    op.drop_index("ix_xp_events_created_at", table_name="xp_events")
    op.drop_index("ix_xp_events_user_id", table_name="xp_events")
    op.drop_table("xp_events")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
