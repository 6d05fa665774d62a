"""Bulk reconciliation of events that never reached the admin portal."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from teacher_portal.config import Settings
from teacher_portal.metrics import reconciliation_runs_total
from teacher_portal.schemas.event import EventRecord
from teacher_portal.services.admin_sync_client import AdminPortalClient
from teacher_portal.services.event_store import EventStore
from teacher_portal.services.sync_orchestrator import SyncOrchestrator, SyncOutcome, utcnow

logger = logging.getLogger(__name__)

_ATTEMPTED = (SyncOutcome.SYNCED, SyncOutcome.FAILED, SyncOutcome.MAPPING_FAILED)


@dataclass
class ReconciliationReport:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    remote_healthy: bool = True


class Reconciler:
    """Re-push every unsynced, due event in one pass.

    The admin portal is probed first; if it is down the whole pass is skipped
    so a recovering remote does not receive a burst of queued pushes.
    """

    def __init__(
        self,
        store: EventStore,
        client: AdminPortalClient,
        orchestrator: SyncOrchestrator,
        *,
        batch_size: int = 100,
        concurrency: int = 4,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._client = client
        self._orchestrator = orchestrator
        self._batch_size = batch_size
        self._concurrency = max(concurrency, 1)
        self._clock = clock

    async def reconcile_all(self) -> ReconciliationReport:
        report = ReconciliationReport()

        if not self._orchestrator.enabled:
            logger.info("Admin sync disabled, skipping bulk sync")
            reconciliation_runs_total.labels(result="disabled").inc()
            return report

        if not await self._client.check_health():
            logger.warning("Admin portal unhealthy; skipping reconciliation pass")
            report.remote_healthy = False
            reconciliation_runs_total.labels(result="remote_down").inc()
            return report

        candidates = await self._store.list_pending_sync(self._clock(), self._batch_size)
        if not candidates:
            reconciliation_runs_total.labels(result="completed").inc()
            return report

        logger.info("Starting bulk sync of %d pending events", len(candidates))
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _sync_one(event: EventRecord) -> SyncOutcome | None:
            async with semaphore:
                try:
                    return await self._orchestrator.sync_event(event)
                except Exception:
                    logger.exception("Reconciliation of event %s failed", event.id)
                    return None

        outcomes = await asyncio.gather(*(_sync_one(e) for e in candidates))

        for outcome in outcomes:
            if outcome is None:
                report.attempted += 1
                report.failed += 1
            elif outcome in _ATTEMPTED:
                report.attempted += 1
                if outcome is SyncOutcome.SYNCED:
                    report.succeeded += 1
                else:
                    report.failed += 1
            else:
                report.skipped += 1

        logger.info(
            "Bulk sync completed: %d attempted, %d succeeded, %d failed, %d skipped",
            report.attempted,
            report.succeeded,
            report.failed,
            report.skipped,
        )
        reconciliation_runs_total.labels(result="completed").inc()
        return report


def get_reconciler(settings: Settings, store: EventStore, client: AdminPortalClient, orchestrator: SyncOrchestrator) -> Reconciler:
    return Reconciler(
        store,
        client,
        orchestrator,
        batch_size=settings.reconcile_batch_size,
        concurrency=settings.reconcile_concurrency,
    )
