"""Teacher event routes."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from teacher_portal.config import Settings, get_settings
from teacher_portal.dependencies import TeacherIdentity, get_current_teacher, get_event_store, get_orchestrator
from teacher_portal.metrics import events_created_total
from teacher_portal.models.event import EventStatus
from teacher_portal.schemas.event import EventCreate, EventEnvelope, EventRecord
from teacher_portal.schemas.sync import SyncOutcomeResponse
from teacher_portal.services.event_store import EventStore
from teacher_portal.services.sync_errors import NotFoundError
from teacher_portal.services.sync_orchestrator import SyncOrchestrator, utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["events"])


def _dump(event: EventRecord) -> dict:
    return event.model_dump(by_alias=True, mode="json")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=EventEnvelope)
async def create_event(
    body: EventCreate,
    background_tasks: BackgroundTasks,
    teacher: TeacherIdentity = Depends(get_current_teacher),
    store: EventStore = Depends(get_event_store),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
):
    """Create an event and hand it to the admin portal for approval.

    The response reflects the local write only. The admin sync runs after the
    response is sent and its result never changes this response.
    """
    if body.status == "draft":
        initial_status = EventStatus.DRAFT
    elif settings.auto_approve_events:
        initial_status = EventStatus.APPROVED
    else:
        initial_status = EventStatus.PENDING

    event = await store.create(
        body,
        creator_id=teacher.id,
        creator_name=teacher.name,
        creator_email=teacher.email,
        campus=teacher.campus,
        status=initial_status,
    )
    events_created_total.labels(status=initial_status.value).inc()

    if initial_status != EventStatus.DRAFT:
        background_tasks.add_task(orchestrator.on_event_created, event)

    return EventEnvelope(message="Event created successfully", data={"event": _dump(event)})


@router.get("", response_model=EventEnvelope)
async def list_events(
    teacher: TeacherIdentity = Depends(get_current_teacher),
    store: EventStore = Depends(get_event_store),
    limit: int = Query(50, ge=1, le=50),
):
    """List the current teacher's events, newest first."""
    events = await store.list_for_creator(teacher.id, limit=limit)
    return EventEnvelope(data={"events": [_dump(e) for e in events], "total": len(events)})


@router.get("/{event_id}", response_model=EventEnvelope)
async def get_event(
    event_id: int,
    teacher: TeacherIdentity = Depends(get_current_teacher),
    store: EventStore = Depends(get_event_store),
):
    event = await store.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    if event.created_by != teacher.id:
        raise HTTPException(status_code=403, detail="Access denied. You can only view your own events.")
    return EventEnvelope(data={"event": _dump(event)})


@router.post("/{event_id}/submit", response_model=EventEnvelope)
async def submit_event(
    event_id: int,
    background_tasks: BackgroundTasks,
    teacher: TeacherIdentity = Depends(get_current_teacher),
    store: EventStore = Depends(get_event_store),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Promote a draft to pending so it is sent for approval."""
    event = await store.submit_draft(event_id, teacher.id, utcnow())
    if event is None:
        raise HTTPException(status_code=404, detail="Draft event not found")

    background_tasks.add_task(orchestrator.on_event_created, event)
    return EventEnvelope(message="Event submitted for approval", data={"event": _dump(event)})


@router.post("/{event_id}/sync", response_model=SyncOutcomeResponse)
async def retry_event_sync(
    event_id: int,
    teacher: TeacherIdentity = Depends(get_current_teacher),
    store: EventStore = Depends(get_event_store),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Re-attempt the admin sync for one of the teacher's events."""
    event = await store.get(event_id)
    if event is None or event.created_by != teacher.id:
        raise HTTPException(status_code=404, detail="Event not found")

    try:
        outcome = await orchestrator.retry_event(event_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Event not found")

    return SyncOutcomeResponse(event_id=event_id, outcome=outcome.value)
