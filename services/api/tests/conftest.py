"""Shared test fixtures."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from teacher_portal.models.event import EventStatus
from teacher_portal.schemas.event import EventCreate, EventRecord
from teacher_portal.services.sync_errors import SyncResult, TransportError, TransportErrorKind

FIXED_NOW = datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc)


class InMemoryEventStore:
    """Dict-backed stand-in for ``EventStore`` with the same CAS semantics."""

    def __init__(self, events: list[EventRecord] | None = None) -> None:
        self.events: dict[int, EventRecord] = {e.id: e for e in events or []}
        self.claims: dict[int, datetime] = {}
        self._next_id = max(self.events, default=0) + 1

    def _update(self, event_id: int, **changes) -> EventRecord:
        updated = self.events[event_id].model_copy(update=changes)
        self.events[event_id] = updated
        return updated

    async def create(self, data: EventCreate, creator_id, creator_name, creator_email, campus, status) -> EventRecord:
        record = EventRecord(
            id=self._next_id,
            **data.model_dump(exclude={"status"}),
            created_by=creator_id,
            created_by_name=creator_name,
            created_by_email=creator_email,
            campus=campus,
            status=status,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
        self.events[record.id] = record
        self._next_id += 1
        return record

    async def get(self, event_id: int) -> EventRecord | None:
        return self.events.get(event_id)

    async def list_for_creator(self, creator_id: int, limit: int = 50) -> list[EventRecord]:
        mine = [e for e in self.events.values() if e.created_by == creator_id]
        return sorted(mine, key=lambda e: e.id, reverse=True)[:limit]

    async def submit_draft(self, event_id: int, creator_id: int, now: datetime) -> EventRecord | None:
        event = self.events.get(event_id)
        if event is None or event.created_by != creator_id or event.status != EventStatus.DRAFT:
            return None
        return self._update(event_id, status=EventStatus.PENDING, sync_blocked=False, next_sync_attempt_at=None)

    async def claim_for_sync(self, event_id: int, now: datetime, lease: timedelta) -> bool:
        event = self.events.get(event_id)
        if event is None or event.synced:
            return False
        claimed_at = self.claims.get(event_id)
        if claimed_at is not None and claimed_at >= now - lease:
            return False
        self.claims[event_id] = now
        self._update(event_id, last_sync_attempt_at=now)
        return True

    async def mark_synced(self, event_id: int, remote_id: str | None, now: datetime) -> bool:
        event = self.events.get(event_id)
        if event is None or event.synced:
            return False
        self.claims.pop(event_id, None)
        self._update(
            event_id,
            synced=True,
            synced_at=now,
            remote_id=remote_id,
            sync_attempts=event.sync_attempts + 1,
            last_sync_error=None,
            next_sync_attempt_at=None,
            sync_blocked=False,
        )
        return True

    async def record_sync_failure(self, event_id, error, now, retry_at, blocked=False) -> None:
        event = self.events.get(event_id)
        if event is None or event.synced:
            return
        self.claims.pop(event_id, None)
        self._update(
            event_id,
            sync_attempts=event.sync_attempts + 1,
            last_sync_attempt_at=now,
            last_sync_error=error,
            next_sync_attempt_at=retry_at,
            sync_blocked=blocked,
        )

    async def list_pending_sync(self, now: datetime, limit: int) -> list[EventRecord]:
        due = [
            e
            for e in self.events.values()
            if not e.synced
            and not e.sync_blocked
            and e.status != EventStatus.DRAFT
            and (e.next_sync_attempt_at is None or e.next_sync_attempt_at <= now)
        ]
        return sorted(due, key=lambda e: e.id)[:limit]

    async def apply_remote_status(self, event_id, status, admin_notes, now) -> EventRecord | None:
        if event_id not in self.events:
            return None
        changes = {"status": status}
        if admin_notes:
            changes["admin_notes"] = admin_notes
        return self._update(event_id, **changes)

    async def sync_summary(self) -> dict[str, int]:
        values = list(self.events.values())
        return {
            "synced": sum(e.synced for e in values),
            "pending": sum(not e.synced and not e.sync_blocked and e.status != EventStatus.DRAFT for e in values),
            "blocked": sum(e.sync_blocked for e in values),
            "drafts": sum(e.status == EventStatus.DRAFT for e in values),
        }


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_event(event_id: int = 42, **overrides) -> EventRecord:
    fields = {
        "id": event_id,
        "title": "Hackathon",
        "description": "24 hour coding competition",
        "eventType": "competition",
        "startDate": "2025-03-01",
        "location": "Lab 3",
        "createdBy": 7,
        "createdByName": "Test Teacher",
        "createdByEmail": "teacher@bitspilani.ae",
        "campus": "dubai",
        "status": "pending",
    }
    fields.update(overrides)
    return EventRecord.model_validate(fields)


def ok_result(remote_id: str = "65f0c0ffee") -> SyncResult:
    return SyncResult(remote_event={"_id": remote_id, "status": "pending"})


def refused_result() -> SyncResult:
    return SyncResult(error=TransportError(TransportErrorKind.CONNECTION_REFUSED, "connection refused"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_event() -> EventRecord:
    return make_event()


@pytest.fixture
def store(sample_event) -> InMemoryEventStore:
    return InMemoryEventStore([sample_event])


@pytest.fixture
def mock_client():
    client = AsyncMock()
    client.push_event.return_value = ok_result()
    client.check_health.return_value = True
    return client


@pytest.fixture
def default_event_date() -> date:
    return date(2025, 1, 1)
