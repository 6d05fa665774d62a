"""Celery application configuration."""

from celery import Celery
from celery.signals import after_setup_logger

from teacher_portal.config import get_settings

settings = get_settings()

celery_app = Celery(
    "teacher_portal",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_routes={
        "teacher_portal.tasks.sync_tasks.*": {"queue": "admin_sync"},
    },
    beat_schedule={
        # Re-push events that never reached the admin portal
        "reconcile-pending-events": {
            "task": "teacher_portal.tasks.sync_tasks.reconcile_pending_events",
            "schedule": settings.reconcile_interval_seconds,
        },
    },
)

celery_app.autodiscover_tasks(["teacher_portal.tasks"], related_name="sync_tasks")


@after_setup_logger.connect
def _configure_structlog(**kwargs):
    from teacher_portal.middleware.logging import setup_logging

    setup_logging(debug=settings.debug)
