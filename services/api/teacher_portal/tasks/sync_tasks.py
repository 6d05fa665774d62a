"""Celery tasks for admin portal synchronization."""

import asyncio
import logging
from dataclasses import asdict

from celery import shared_task
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from teacher_portal.config import get_settings
from teacher_portal.services.admin_sync_client import get_admin_portal_client
from teacher_portal.services.event_store import EventStore
from teacher_portal.services.reconciler import get_reconciler
from teacher_portal.services.sync_orchestrator import get_sync_orchestrator

logger = logging.getLogger(__name__)


def _build_services():
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    store = EventStore(async_sessionmaker(engine, expire_on_commit=False))
    client = get_admin_portal_client(settings)
    orchestrator = get_sync_orchestrator(settings, store, client)
    return engine, store, client, orchestrator, settings


@shared_task(name="teacher_portal.tasks.sync_tasks.reconcile_pending_events")
def reconcile_pending_events() -> dict:
    """Run one reconciliation pass and return its report."""

    async def _run() -> dict:
        engine, store, client, orchestrator, settings = _build_services()
        try:
            reconciler = get_reconciler(settings, store, client, orchestrator)
            report = await reconciler.reconcile_all()
            return asdict(report)
        finally:
            await engine.dispose()

    report = asyncio.run(_run())
    logger.info("Reconciliation task finished: %s", report)
    return report

