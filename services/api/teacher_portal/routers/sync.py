"""Admin portal sync routes: inbound status webhook and reconciliation controls."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from teacher_portal.config import Settings, get_settings
from teacher_portal.dependencies import (
    get_admin_client,
    get_bulk_reconciler,
    get_event_store,
    get_orchestrator,
    verify_admin_webhook,
)
from teacher_portal.schemas.sync import (
    AdminHealthResponse,
    ReconciliationReportResponse,
    StatusWebhookRequest,
    SyncSummaryResponse,
)
from teacher_portal.services.admin_sync_client import AdminPortalClient
from teacher_portal.services.event_store import EventStore
from teacher_portal.services.reconciler import Reconciler
from teacher_portal.services.sync_errors import NotFoundError
from teacher_portal.services.sync_orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("/status", dependencies=[Depends(verify_admin_webhook)])
async def remote_status_webhook(
    body: StatusWebhookRequest,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Receive an approve/reject/cancel decision from the admin portal."""
    try:
        event = await orchestrator.on_remote_status_changed(
            body.teacher_portal_id,
            body.status,
            body.admin_notes,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Event not found")

    return {
        "success": True,
        "teacherPortalId": body.teacher_portal_id,
        "status": event.status.value if event else body.status.value,
        "adminNotes": body.admin_notes,
    }


@router.post(
    "/reconcile",
    response_model=ReconciliationReportResponse,
    dependencies=[Depends(verify_admin_webhook)],
)
async def reconcile(reconciler: Reconciler = Depends(get_bulk_reconciler)):
    """Run one reconciliation pass now."""
    report = await reconciler.reconcile_all()
    return ReconciliationReportResponse(
        attempted=report.attempted,
        succeeded=report.succeeded,
        failed=report.failed,
        skipped=report.skipped,
        remote_healthy=report.remote_healthy,
    )


@router.get(
    "/health",
    response_model=AdminHealthResponse,
    dependencies=[Depends(verify_admin_webhook)],
)
async def admin_portal_health(
    client: AdminPortalClient = Depends(get_admin_client),
    settings: Settings = Depends(get_settings),
):
    healthy = await client.check_health() if settings.admin_sync_enabled else False
    return AdminHealthResponse(
        admin_portal_url=settings.admin_portal_url,
        healthy=healthy,
        sync_enabled=settings.admin_sync_enabled,
    )


@router.get(
    "/summary",
    response_model=SyncSummaryResponse,
    dependencies=[Depends(verify_admin_webhook)],
)
async def sync_summary(store: EventStore = Depends(get_event_store)):
    """Counts of synced, pending, blocked and draft events."""
    return SyncSummaryResponse(**await store.sync_summary())
