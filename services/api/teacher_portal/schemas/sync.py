"""Admin portal sync schemas."""

import enum
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RemoteEventStatus(str, enum.Enum):
    """Statuses the admin portal's document store knows about (no ``draft``)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class RemoteEventPayload(BaseModel):
    """Event shape accepted by ``POST {admin}/api/events/sync``."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    title: str
    description: str | None = None
    category: str
    event_date: date
    start_time: str | None = None
    end_time: str | None = None
    venue: str | None = None
    location: str | None = None
    max_participants: int | None = None
    registration_required: bool | None = None
    registration_deadline: datetime | None = None
    is_public: bool | None = None
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = None
    requirements: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    created_by: str = "teacher"
    created_by_name: str
    created_by_email: str
    campus: str
    teacher_portal_id: int
    status: RemoteEventStatus = RemoteEventStatus.PENDING


class StatusWebhookRequest(BaseModel):
    """Status change reported by the admin portal."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    teacher_portal_id: int
    status: RemoteEventStatus
    admin_notes: str = Field("", max_length=2000)


class SyncOutcomeResponse(BaseModel):
    event_id: int
    outcome: str


class ReconciliationReportResponse(BaseModel):
    attempted: int
    succeeded: int
    failed: int
    skipped: int
    remote_healthy: bool


class SyncSummaryResponse(BaseModel):
    synced: int
    pending: int
    blocked: int
    drafts: int


class AdminHealthResponse(BaseModel):
    admin_portal_url: str
    healthy: bool
    sync_enabled: bool
