"""Initial schema.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-15 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None

event_status = postgresql.ENUM(
    "draft", "pending", "approved", "rejected", "cancelled",
    name="event_status",
    create_type=False,
)


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="teacher"),
        sa.Column("campus", sa.String(32), nullable=False, server_default="dubai"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- events ---
    event_status.create(op.get_bind(), checkfirst=True)
    op.create_table(
        "events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("start_time", sa.String(5), nullable=True),
        sa.Column("end_time", sa.String(5), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("max_participants", sa.Integer, nullable=True),
        sa.Column("registration_required", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("tags", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("requirements", sa.Text, nullable=True),
        sa.Column("contact_email", sa.String(320), nullable=True),
        sa.Column("contact_phone", sa.String(32), nullable=True),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_by_name", sa.String(255), nullable=True),
        sa.Column("created_by_email", sa.String(320), nullable=True),
        sa.Column("campus", sa.String(32), nullable=False, server_default="dubai"),
        sa.Column("status", event_status, nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text, nullable=True),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_events_created_by", "events", ["created_by"])
    op.create_index("ix_events_event_type", "events", ["event_type"])
    op.create_index("ix_events_start_date", "events", ["start_date"])
    op.create_index("ix_events_status", "events", ["status"])


def downgrade() -> None:
    op.drop_table("events")
    event_status.drop(op.get_bind(), checkfirst=True)
    op.drop_table("users")
