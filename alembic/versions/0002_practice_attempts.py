"""Record every committed practice attempt"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0002_practice_attempts"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "practice_attempts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_practice_attempts_user_id_users"),
            nullable=False,
        ),
        sa.Column("attempt_id", sa.String(length=128), nullable=False),
        sa.Column("mode", sa.String(length=32), server_default=sa.text("'reorder'"), nullable=False),
        sa.Column("is_correct", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("xp_awarded", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("meta", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "attempt_id", name="uq_practice_attempts_user_attempt"),
    )
    op.create_index("ix_practice_attempts_user_id", "practice_attempts", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_practice_attempts_user_id", table_name="practice_attempts")
    op.drop_table("practice_attempts")
