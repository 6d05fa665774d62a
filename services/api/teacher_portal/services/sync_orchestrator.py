"""Sync orchestration between the teacher portal and the admin portal."""

import enum
import logging
import random
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from teacher_portal.config import Settings
from teacher_portal.metrics import admin_sync_duration_seconds, admin_sync_total, remote_status_updates_total
from teacher_portal.models.event import EventStatus
from teacher_portal.schemas.event import EventRecord
from teacher_portal.schemas.sync import RemoteEventStatus
from teacher_portal.services.admin_sync_client import AdminPortalClient
from teacher_portal.services.event_store import EventStore
from teacher_portal.services.field_mapper import map_to_remote_schema
from teacher_portal.services.sync_errors import MappingError, NotFoundError

logger = logging.getLogger(__name__)


class SyncOutcome(str, enum.Enum):
    SYNCED = "synced"
    FAILED = "failed"
    MAPPING_FAILED = "mapping_failed"
    ALREADY_SYNCED = "already_synced"
    IN_FLIGHT = "in_flight"
    SKIPPED_DISABLED = "skipped_disabled"
    SKIPPED_DRAFT = "skipped_draft"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BackoffPolicy:
    """Capped exponential backoff with equal jitter."""

    base_seconds: float = 30.0
    max_seconds: float = 3600.0

    def delay_for(self, attempts: int, rng: random.Random) -> float:
        """Delay before the next try after ``attempts`` earlier attempts."""
        ceiling = min(self.max_seconds, self.base_seconds * (2 ** max(attempts, 0)))
        half = ceiling / 2
        return half + rng.uniform(0, half)


class SyncOrchestrator:
    """Push local events to the admin portal and apply its status changes back.

    Local writes are always committed before a push, and no sync failure is
    ever raised to the caller of ``on_event_created``. When ``enabled`` is
    False every operation is a no-op that reports success.
    """

    def __init__(
        self,
        store: EventStore,
        client: AdminPortalClient,
        *,
        enabled: bool = True,
        claim_lease: timedelta = timedelta(seconds=60),
        backoff: BackoffPolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
        rng: random.Random | None = None,
        default_event_date: date | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._enabled = enabled
        self._claim_lease = claim_lease
        self._backoff = backoff or BackoffPolicy()
        self._clock = clock
        self._rng = rng or random.Random()
        self._default_event_date = default_event_date

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def on_event_created(self, event: EventRecord) -> None:
        """Sync a freshly created event. Never raises."""
        if not self._enabled:
            logger.debug("Admin sync disabled, skipping event %s", event.id)
            return

        try:
            outcome = await self.sync_event(event)
        except Exception:
            logger.exception("Admin sync for new event %s failed; event kept locally", event.id)
            return

        if outcome is not SyncOutcome.SYNCED:
            logger.info("Event %s not synced on create (%s); left for reconciliation", event.id, outcome.value)

    async def sync_event(self, event: EventRecord) -> SyncOutcome:
        """Run one sync attempt: claim, map, push, record.

        Store errors propagate; transport and mapping failures are recorded on
        the event and reported through the outcome.
        """
        if not self._enabled:
            return SyncOutcome.SKIPPED_DISABLED
        if event.status == EventStatus.DRAFT:
            return SyncOutcome.SKIPPED_DRAFT
        if event.synced:
            return SyncOutcome.ALREADY_SYNCED

        now = self._clock()
        if not await self._store.claim_for_sync(event.id, now, self._claim_lease):
            logger.debug("Event %s already synced or being synced elsewhere", event.id)
            admin_sync_total.labels(outcome=SyncOutcome.IN_FLIGHT.value).inc()
            return SyncOutcome.IN_FLIGHT

        try:
            payload = map_to_remote_schema(event, default_event_date=self._default_event_date)
        except MappingError as e:
            logger.error("Cannot map event %s for admin portal: %s", event.id, e)
            await self._store.record_sync_failure(event.id, f"mapping: {e}", now, retry_at=None, blocked=True)
            admin_sync_total.labels(outcome=SyncOutcome.MAPPING_FAILED.value).inc()
            return SyncOutcome.MAPPING_FAILED

        start = time.monotonic()
        result = await self._client.push_event(payload)
        admin_sync_duration_seconds.observe(time.monotonic() - start)

        finished = self._clock()
        if result.ok:
            if await self._store.mark_synced(event.id, result.remote_id, finished):
                admin_sync_total.labels(outcome=SyncOutcome.SYNCED.value).inc()
                return SyncOutcome.SYNCED
            admin_sync_total.labels(outcome=SyncOutcome.ALREADY_SYNCED.value).inc()
            return SyncOutcome.ALREADY_SYNCED

        delay = self._backoff.delay_for(event.sync_attempts, self._rng)
        retry_at = finished + timedelta(seconds=delay)
        await self._store.record_sync_failure(event.id, str(result.error), finished, retry_at=retry_at)
        # Connection and timeout failures clear up on their own
        level = logging.INFO if result.error.transient else logging.WARNING
        logger.log(
            level,
            "Event %s sync failed (%s); next attempt after %s",
            event.id,
            result.error,
            retry_at.isoformat(),
        )
        admin_sync_total.labels(outcome=SyncOutcome.FAILED.value).inc()
        return SyncOutcome.FAILED

    async def retry_event(self, event_id: int) -> SyncOutcome:
        """Manually re-attempt one event by id.

        Raises:
            NotFoundError: no local event has that id.
        """
        if not self._enabled:
            return SyncOutcome.SKIPPED_DISABLED

        event = await self._store.get(event_id)
        if event is None:
            raise NotFoundError(event_id)
        return await self.sync_event(event)

    async def on_remote_status_changed(
        self,
        teacher_portal_id: int,
        new_status: RemoteEventStatus | str,
        note: str = "",
    ) -> EventRecord | None:
        """Apply an approve/reject/cancel decision made in the admin portal.

        Raises:
            NotFoundError: no local event has ``teacher_portal_id``.
            ValueError: ``new_status`` is not a status the admin portal uses.
        """
        if not self._enabled:
            return None

        remote_status = RemoteEventStatus(new_status)
        record = await self._store.apply_remote_status(
            teacher_portal_id,
            EventStatus(remote_status.value),
            note,
            self._clock(),
        )
        if record is None:
            logger.warning("Status update for unknown event %s", teacher_portal_id)
            raise NotFoundError(teacher_portal_id)

        remote_status_updates_total.labels(status=remote_status.value).inc()
        logger.info("Event %s status set to %s by admin portal", teacher_portal_id, remote_status.value)
        return record


def get_sync_orchestrator(settings: Settings, store: EventStore, client: AdminPortalClient) -> SyncOrchestrator:
    return SyncOrchestrator(
        store,
        client,
        enabled=settings.admin_sync_enabled,
        claim_lease=timedelta(seconds=settings.sync_claim_lease_seconds),
        backoff=BackoffPolicy(
            base_seconds=settings.sync_backoff_base_seconds,
            max_seconds=settings.sync_backoff_max_seconds,
        ),
    )
