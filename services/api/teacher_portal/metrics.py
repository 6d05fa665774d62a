"""Prometheus metric definitions for the teacher portal.

Single source of truth for all custom metrics. Import from here in API and Celery code.
"""

from prometheus_client import Counter, Histogram

# --- Event metrics ---

events_created_total = Counter(
    "teacher_portal_events_created_total",
    "Total events created locally by initial status",
    ["status"],
)

# --- Admin portal sync metrics ---

admin_sync_total = Counter(
    "teacher_portal_admin_sync_total",
    "Admin portal sync attempts by outcome",
    ["outcome"],
)

admin_sync_duration_seconds = Histogram(
    "teacher_portal_admin_sync_duration_seconds",
    "Duration of pushes to the admin portal in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

reconciliation_runs_total = Counter(
    "teacher_portal_reconciliation_runs_total",
    "Reconciliation passes by result",
    ["result"],
)

remote_status_updates_total = Counter(
    "teacher_portal_remote_status_updates_total",
    "Status changes applied from the admin portal",
    ["status"],
)
