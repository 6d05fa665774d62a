"""Tests for the scheduled reconciliation task."""

from unittest.mock import AsyncMock, MagicMock, patch

from teacher_portal.services.reconciler import ReconciliationReport
from teacher_portal.tasks.celery_app import celery_app
from teacher_portal.tasks.sync_tasks import reconcile_pending_events


class TestBeatSchedule:
    def test_reconcile_scheduled(self):
        entry = celery_app.conf.beat_schedule["reconcile-pending-events"]
        assert entry["task"] == "teacher_portal.tasks.sync_tasks.reconcile_pending_events"
        assert entry["schedule"] == 300

    def test_sync_tasks_routed_to_own_queue(self):
        assert celery_app.conf.task_routes["teacher_portal.tasks.sync_tasks.*"] == {"queue": "admin_sync"}


class TestReconcileTask:
    def test_returns_report_and_disposes_engine(self):
        engine = AsyncMock()
        reconciler = AsyncMock()
        reconciler.reconcile_all.return_value = ReconciliationReport(attempted=2, succeeded=2)

        with patch(
            "teacher_portal.tasks.sync_tasks._build_services",
            return_value=(engine, MagicMock(), MagicMock(), MagicMock(), MagicMock()),
        ), patch("teacher_portal.tasks.sync_tasks.get_reconciler", return_value=reconciler):
            report = reconcile_pending_events()

        assert report == {"attempted": 2, "succeeded": 2, "failed": 0, "skipped": 0, "remote_healthy": True}
        engine.dispose.assert_awaited_once()
