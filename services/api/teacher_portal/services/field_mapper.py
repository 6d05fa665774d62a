"""Map relational events onto the admin portal's document schema."""

from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import ValidationError

from teacher_portal.models.event import EventStatus
from teacher_portal.schemas.event import EventRecord
from teacher_portal.schemas.sync import RemoteEventPayload, RemoteEventStatus
from teacher_portal.services.sync_errors import MappingError

# The admin store's createdBy is a document reference; our integer ids can't
# go there, so the name/email pair is the only shared creator identity.
REMOTE_CREATED_BY = "teacher"
DEFAULT_CREATOR_NAME = "Teacher"
DEFAULT_CREATOR_EMAIL = "teacher@bitspilani.ac.ae"
DEFAULT_CAMPUS = "dubai"


def _as_record(local_event: EventRecord | Mapping[str, Any]) -> EventRecord:
    if isinstance(local_event, EventRecord):
        return local_event
    try:
        if isinstance(local_event, Mapping):
            return EventRecord.model_validate(dict(local_event))
        return EventRecord.model_validate(local_event, from_attributes=True)
    except ValidationError as e:
        raise MappingError(f"Malformed local event: {e.error_count()} validation error(s)") from e


def map_to_remote_schema(
    local_event: EventRecord | Mapping[str, Any],
    *,
    default_event_date: date | None = None,
) -> dict[str, Any]:
    """Translate a local event into the JSON body for the admin sync endpoint.

    Renames ``eventType -> category``, ``startDate -> eventDate``,
    ``location -> venue`` (keeping ``location``) and ``id -> teacherPortalId``.
    Optional fields that are missing locally are emitted as ``None``.

    ``default_event_date`` is used when the event has no start date; without
    it such an event cannot be mapped.

    Raises:
        MappingError: the record is malformed, still a draft, or lacks a
            field the admin portal requires.
    """
    event = _as_record(local_event)

    if event.status == EventStatus.DRAFT:
        raise MappingError(f"Event {event.id} is a draft and cannot be synced")
    if not event.title or not event.title.strip():
        raise MappingError(f"Event {event.id} has no title")
    if not event.event_type:
        raise MappingError(f"Event {event.id} has no event type")

    event_date = event.start_date or default_event_date
    if event_date is None:
        raise MappingError(f"Event {event.id} has no start date")

    payload = RemoteEventPayload(
        title=event.title,
        description=event.description,
        category=event.event_type,
        event_date=event_date,
        start_time=event.start_time,
        end_time=event.end_time,
        venue=event.location,
        location=event.location,
        max_participants=event.max_participants,
        registration_required=event.registration_required,
        registration_deadline=event.registration_deadline,
        is_public=event.is_public,
        tags=list(event.tags),
        image_url=event.image_url,
        requirements=event.requirements,
        contact_email=event.contact_email,
        contact_phone=event.contact_phone,
        created_by=REMOTE_CREATED_BY,
        created_by_name=event.created_by_name or DEFAULT_CREATOR_NAME,
        created_by_email=event.created_by_email or DEFAULT_CREATOR_EMAIL,
        campus=event.campus or DEFAULT_CAMPUS,
        teacher_portal_id=event.id,
        status=RemoteEventStatus.PENDING,
    )
    return payload.model_dump(by_alias=True, mode="json")
