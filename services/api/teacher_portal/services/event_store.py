"""Relational event store.

Every method opens its own session and commits before returning, so a
caller never holds a transaction open across a network call. Sync-state
transitions are single conditional UPDATEs (compare-and-set on ``synced``
and ``sync_claimed_at``) so the reconciler and a manual retry can race
safely.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teacher_portal.models.event import Event, EventStatus
from teacher_portal.schemas.event import EventCreate, EventRecord

logger = logging.getLogger(__name__)


class EventStore:
    """Async repository for ``events`` rows, returning ``EventRecord`` values."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(
        self,
        data: EventCreate,
        creator_id: int,
        creator_name: str | None,
        creator_email: str | None,
        campus: str,
        status: EventStatus,
    ) -> EventRecord:
        """Insert and commit a new event. The commit happens before any sync."""
        fields = data.model_dump(exclude={"status"})
        async with self._session_factory() as session:
            event = Event(
                **fields,
                created_by=creator_id,
                created_by_name=creator_name,
                created_by_email=creator_email,
                campus=campus,
                status=status,
                synced=False,
                sync_attempts=0,
                sync_blocked=False,
            )
            session.add(event)
            await session.flush()
            await session.refresh(event)
            record = EventRecord.model_validate(event)
            await session.commit()
        return record

    async def get(self, event_id: int) -> EventRecord | None:
        async with self._session_factory() as session:
            event = await session.get(Event, event_id)
            return EventRecord.model_validate(event) if event else None

    async def list_for_creator(self, creator_id: int, limit: int = 50) -> list[EventRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Event)
                .where(Event.created_by == creator_id)
                .order_by(Event.created_at.desc())
                .limit(limit)
            )
            return [EventRecord.model_validate(e) for e in result.scalars().all()]

    async def submit_draft(self, event_id: int, creator_id: int, now: datetime) -> EventRecord | None:
        """Promote a draft to pending. Returns None if it is not the creator's draft."""
        async with self._session_factory() as session:
            result = await session.execute(
                update(Event)
                .where(
                    Event.id == event_id,
                    Event.created_by == creator_id,
                    Event.status == EventStatus.DRAFT,
                )
                .values(
                    status=EventStatus.PENDING,
                    status_changed_at=now,
                    sync_blocked=False,
                    next_sync_attempt_at=None,
                )
            )
            if result.rowcount != 1:
                await session.rollback()
                return None
            await session.commit()
            event = await session.get(Event, event_id, populate_existing=True)
            return EventRecord.model_validate(event) if event else None

    async def claim_for_sync(self, event_id: int, now: datetime, lease: timedelta) -> bool:
        """Take the in-flight claim for one sync attempt.

        Fails if the event is already synced or another attempt holds an
        unexpired claim.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                update(Event)
                .where(
                    Event.id == event_id,
                    Event.synced.is_(False),
                    or_(
                        Event.sync_claimed_at.is_(None),
                        Event.sync_claimed_at < now - lease,
                    ),
                )
                .values(sync_claimed_at=now, last_sync_attempt_at=now)
            )
            await session.commit()
            return result.rowcount == 1

    async def mark_synced(self, event_id: int, remote_id: str | None, now: datetime) -> bool:
        """Flip ``synced`` false -> true. Returns False if it was already true."""
        async with self._session_factory() as session:
            result = await session.execute(
                update(Event)
                .where(Event.id == event_id, Event.synced.is_(False))
                .values(
                    synced=True,
                    synced_at=now,
                    remote_id=remote_id,
                    sync_attempts=Event.sync_attempts + 1,
                    last_sync_error=None,
                    next_sync_attempt_at=None,
                    sync_claimed_at=None,
                    sync_blocked=False,
                )
            )
            await session.commit()
            return result.rowcount == 1

    async def record_sync_failure(
        self,
        event_id: int,
        error: str,
        now: datetime,
        retry_at: datetime | None,
        blocked: bool = False,
    ) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(Event)
                .where(Event.id == event_id, Event.synced.is_(False))
                .values(
                    sync_attempts=Event.sync_attempts + 1,
                    last_sync_attempt_at=now,
                    last_sync_error=error[:2000],
                    next_sync_attempt_at=retry_at,
                    sync_claimed_at=None,
                    sync_blocked=blocked,
                )
            )
            await session.commit()

    async def list_pending_sync(self, now: datetime, limit: int) -> list[EventRecord]:
        """Unsynced, non-draft, unblocked events whose backoff has elapsed, oldest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Event)
                .where(
                    Event.synced.is_(False),
                    Event.sync_blocked.is_(False),
                    Event.status != EventStatus.DRAFT,
                    or_(
                        Event.next_sync_attempt_at.is_(None),
                        Event.next_sync_attempt_at <= now,
                    ),
                )
                .order_by(Event.created_at.asc())
                .limit(limit)
            )
            return [EventRecord.model_validate(e) for e in result.scalars().all()]

    async def apply_remote_status(
        self,
        event_id: int,
        status: EventStatus,
        admin_notes: str | None,
        now: datetime,
    ) -> EventRecord | None:
        """Mirror an admin-portal status change. Returns None if the event is unknown.

        An empty ``admin_notes`` keeps whatever note the event already has.
        """
        async with self._session_factory() as session:
            event = await session.get(Event, event_id)
            if event is None:
                return None
            if event.status != status:
                event.status = status
                event.status_changed_at = now
            if admin_notes:
                event.admin_notes = admin_notes
            await session.flush()
            record = EventRecord.model_validate(event)
            await session.commit()
        return record

    async def sync_summary(self) -> dict[str, int]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    func.count().filter(Event.synced.is_(True)),
                    func.count().filter(
                        and_(
                            Event.synced.is_(False),
                            Event.sync_blocked.is_(False),
                            Event.status != EventStatus.DRAFT,
                        )
                    ),
                    func.count().filter(Event.sync_blocked.is_(True)),
                    func.count().filter(Event.status == EventStatus.DRAFT),
                ).select_from(Event)
            )
            synced, pending, blocked, drafts = result.one()
        return {"synced": synced, "pending": pending, "blocked": blocked, "drafts": drafts}
