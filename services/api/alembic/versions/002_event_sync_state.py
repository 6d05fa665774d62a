"""Track admin portal sync state on events.

Revision ID: 002_event_sync_state
Revises: 001_initial
Create Date: 2025-02-10 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op

revision = "002_event_sync_state"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("events", sa.Column("synced", sa.Boolean(), nullable=False, server_default=sa.false()))
    op.add_column("events", sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True))
    op.add_column("events", sa.Column("remote_id", sa.String(64), nullable=True))
    op.add_column("events", sa.Column("sync_attempts", sa.Integer(), nullable=False, server_default="0"))
    op.add_column("events", sa.Column("last_sync_attempt_at", sa.DateTime(timezone=True), nullable=True))
    op.add_column("events", sa.Column("last_sync_error", sa.Text(), nullable=True))
    op.add_column("events", sa.Column("next_sync_attempt_at", sa.DateTime(timezone=True), nullable=True))
    op.add_column("events", sa.Column("sync_claimed_at", sa.DateTime(timezone=True), nullable=True))
    op.add_column("events", sa.Column("sync_blocked", sa.Boolean(), nullable=False, server_default=sa.false()))
    op.create_index("ix_events_synced", "events", ["synced"])
    # Reconciler scans only rows that still need a push
    op.create_index(
        "ix_events_pending_sync",
        "events",
        ["next_sync_attempt_at"],
        postgresql_where=sa.text("synced = false AND sync_blocked = false AND status <> 'draft'"),
    )


def downgrade() -> None:
    op.drop_index("ix_events_pending_sync", table_name="events")
    op.drop_index("ix_events_synced", table_name="events")
    for column in (
        "sync_blocked",
        "sync_claimed_at",
        "next_sync_attempt_at",
        "last_sync_error",
        "last_sync_attempt_at",
        "sync_attempts",
        "remote_id",
        "synced_at",
        "synced",
    ):
        op.drop_column("events", column)
