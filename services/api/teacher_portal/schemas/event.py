"""Event schemas.

``EventRecord`` is the one in-process shape of an event. ORM rows, request
bodies and store fakes all validate into it; store-specific field names are
handled at the edges (the ORM model and the admin-portal field mapper).
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from teacher_portal.models.event import EventStatus

EventCategory = Literal["academic", "cultural", "sports", "workshop", "seminar", "competition", "social"]

_TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


class EventRecord(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: int
    title: str
    description: str | None = None
    event_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    max_participants: int | None = None
    registration_required: bool = True
    registration_deadline: datetime | None = None
    is_public: bool = True
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = None
    requirements: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    created_by: int | None = None
    created_by_name: str | None = None
    created_by_email: str | None = None
    campus: str | None = None
    status: EventStatus = EventStatus.PENDING
    admin_notes: str | None = None

    # Sync state
    synced: bool = False
    synced_at: datetime | None = None
    remote_id: str | None = None
    sync_attempts: int = 0
    last_sync_attempt_at: datetime | None = None
    last_sync_error: str | None = None
    next_sync_attempt_at: datetime | None = None
    sync_blocked: bool = False

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def none_tags_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("remote_id", mode="before")
    @classmethod
    def coerce_remote_id(cls, v: Any) -> Any:
        return None if v is None else str(v)


class EventCreate(BaseModel):
    """Body of ``POST /events``. Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    event_type: EventCategory
    start_date: date
    end_date: date | None = None
    start_time: str | None = Field(None, pattern=_TIME_PATTERN)
    end_time: str | None = Field(None, pattern=_TIME_PATTERN)
    location: str = Field(..., min_length=1, max_length=200)
    max_participants: int | None = Field(None, ge=1, le=10000)
    registration_required: bool = True
    registration_deadline: datetime | None = None
    is_public: bool = True
    tags: list[str] = Field(default_factory=list, max_length=20)
    image_url: str | None = Field(None, max_length=500)
    requirements: str | None = Field(None, max_length=1000)
    contact_email: str | None = Field(None, max_length=320)
    contact_phone: str | None = Field(None, max_length=32)
    status: Literal["draft", "pending"] = "pending"


class EventEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    data: dict[str, Any]
