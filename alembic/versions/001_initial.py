"""Initial schema -- users and briefings.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, UUID, JSONB

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── Enum type (idempotent via DO/EXCEPTION) ────────────────
    op.execute(sa.text(
        "DO $$ BEGIN CREATE TYPE briefing_status AS ENUM "
        "('queued', 'fetching', 'summarizing', 'done', 'error'); "
        "EXCEPTION WHEN duplicate_object THEN NULL; END $$;"
    ))
    briefing_status = ENUM(
        "queued", "fetching", "summarizing", "done", "error",
        name="briefing_status", create_type=False,
    )

    # 1. users
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("topics", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("interests", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("job_industry", sa.String(100), nullable=True),
        sa.Column("demographic", sa.String(100), nullable=True),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("daily_generate_cap", sa.Integer, nullable=False, server_default="3"),
        sa.Column("generated_count_today", sa.Integer, nullable=False, server_default="0"),
        sa.Column("quota_reset_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # 2. briefings
    op.create_table(
        "briefings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", briefing_status, nullable=False, server_default="queued"),
        sa.Column("status_reason", sa.Text, nullable=True),
        sa.Column("request", JSONB, nullable=False),
        sa.Column("source_window", JSONB, nullable=True),
        sa.Column("articles", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("summary", JSONB, nullable=True),
        sa.Column("error", JSONB, nullable=True),
        sa.Column("progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("queued_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("fetch_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("summarize_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("counters", JSONB, nullable=True),
        sa.Column("costs", JSONB, nullable=True),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("lease_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_index("ix_briefings_user_created", "briefings", ["user_id", "created_at"])
    op.create_index("ix_briefings_status", "briefings", ["status"])


def downgrade() -> None:
    op.drop_index("ix_briefings_status", table_name="briefings")
    op.drop_index("ix_briefings_user_created", table_name="briefings")
    op.drop_table("briefings")
    op.drop_table("users")
    op.execute(sa.text("DROP TYPE IF EXISTS briefing_status"))
