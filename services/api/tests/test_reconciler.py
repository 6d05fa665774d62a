"""Tests for the bulk reconciliation pass."""

import asyncio
import random
from unittest.mock import AsyncMock

import pytest

from conftest import InMemoryEventStore, make_event, ok_result, refused_result
from teacher_portal.services.reconciler import Reconciler
from teacher_portal.services.sync_orchestrator import SyncOrchestrator


def _build(store, client, clock, enabled=True, **kwargs):
    orchestrator = SyncOrchestrator(store, client, enabled=enabled, clock=clock, rng=random.Random(11))
    return Reconciler(store, client, orchestrator, clock=clock, **kwargs)


@pytest.fixture
def unsynced_store():
    return InMemoryEventStore([make_event(i, title=f"Event {i}") for i in range(1, 6)])


class TestHealthGate:
    @pytest.mark.asyncio
    async def test_unhealthy_remote_skips_whole_pass(self, unsynced_store, mock_client, clock):
        mock_client.check_health.return_value = False
        reconciler = _build(unsynced_store, mock_client, clock)

        report = await reconciler.reconcile_all()

        assert report.attempted == 0
        assert report.remote_healthy is False
        assert mock_client.push_event.call_count == 0
        assert all(not e.synced for e in unsynced_store.events.values())

    @pytest.mark.asyncio
    async def test_disabled_skips_health_check_and_push(self, unsynced_store, mock_client, clock):
        reconciler = _build(unsynced_store, mock_client, clock, enabled=False)

        report = await reconciler.reconcile_all()

        assert report.attempted == 0
        mock_client.check_health.assert_not_called()
        mock_client.push_event.assert_not_called()


class TestReconcileAll:
    @pytest.mark.asyncio
    async def test_syncs_every_pending_event(self, unsynced_store, mock_client, clock):
        reconciler = _build(unsynced_store, mock_client, clock)

        report = await reconciler.reconcile_all()

        assert (report.attempted, report.succeeded, report.failed) == (5, 5, 0)
        assert all(e.synced for e in unsynced_store.events.values())

    @pytest.mark.asyncio
    async def test_second_run_attempts_nothing(self, unsynced_store, mock_client, clock):
        reconciler = _build(unsynced_store, mock_client, clock)

        await reconciler.reconcile_all()
        pushes_after_first = mock_client.push_event.call_count
        second = await reconciler.reconcile_all()

        assert pushes_after_first == 5
        assert second.attempted == 0
        assert mock_client.push_event.call_count == 5

    @pytest.mark.asyncio
    async def test_each_record_pushed_at_most_once(self, unsynced_store, mock_client, clock):
        reconciler = _build(unsynced_store, mock_client, clock)

        await reconciler.reconcile_all()
        await reconciler.reconcile_all()

        pushed_ids = [c[0][0]["teacherPortalId"] for c in mock_client.push_event.call_args_list]
        assert sorted(pushed_ids) == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_backed_off(self, unsynced_store, mock_client, clock):
        mock_client.push_event.return_value = refused_result()
        reconciler = _build(unsynced_store, mock_client, clock)

        first = await reconciler.reconcile_all()
        immediate = await reconciler.reconcile_all()

        assert (first.attempted, first.succeeded, first.failed) == (5, 0, 5)
        # backoff has not elapsed yet
        assert immediate.attempted == 0

        mock_client.push_event.return_value = ok_result()
        clock.advance(hours=2)
        later = await reconciler.reconcile_all()

        assert later.succeeded == 5
        assert all(e.synced for e in unsynced_store.events.values())

    @pytest.mark.asyncio
    async def test_drafts_and_blocked_records_are_not_candidates(self, mock_client, clock):
        store = InMemoryEventStore(
            [
                make_event(1),
                make_event(2, status="draft"),
                make_event(3, syncBlocked=True),
                make_event(4, synced=True),
            ]
        )
        reconciler = _build(store, mock_client, clock)

        report = await reconciler.reconcile_all()

        assert report.attempted == 1
        assert mock_client.push_event.call_args[0][0]["teacherPortalId"] == 1

    @pytest.mark.asyncio
    async def test_batch_size_bounds_one_pass(self, unsynced_store, mock_client, clock):
        reconciler = _build(unsynced_store, mock_client, clock, batch_size=2)

        report = await reconciler.reconcile_all()

        assert report.attempted == 2

    @pytest.mark.asyncio
    async def test_concurrency_limit_is_respected(self, unsynced_store, clock):
        in_flight = 0
        peak = 0

        async def slow_push(payload):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return ok_result()

        client = AsyncMock()
        client.check_health.return_value = True
        client.push_event.side_effect = slow_push
        reconciler = _build(unsynced_store, client, clock, concurrency=2)

        report = await reconciler.reconcile_all()

        assert report.succeeded == 5
        assert peak <= 2

    @pytest.mark.asyncio
    async def test_record_error_does_not_abort_pass(self, unsynced_store, mock_client, clock):
        mock_client.push_event.side_effect = [RuntimeError("boom")] + [ok_result()] * 4
        reconciler = _build(unsynced_store, mock_client, clock, concurrency=1)

        report = await reconciler.reconcile_all()

        assert report.attempted == 5
        assert report.succeeded == 4
        assert report.failed == 1
