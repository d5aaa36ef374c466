"""
Scheduler Service Tests.

- Future schedules get exactly one job; rescheduling replaces it
- Past-due schedules get no job and stay unsent
- Cancel is a no-op for unknown or already-fired schedules
- A fired job always leaves the registry, whatever the dispatch outcome
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from message_scheduler.scheduler import (
    ExplicitRecipients,
    InvalidScheduleError,
    RecordStore,
    ScheduleRecord,
    SchedulerService,
    StoreUnavailableError,
)

from .conftest import (
    FakeTransport,
    assert_sent,
    assert_single_job,
    in_future,
    in_past,
    wait_until_dispatched,
)


class TestScheduleMessage:
    """Job creation and replacement."""

    @pytest.mark.asyncio
    async def test_future_schedule_creates_job(self, service: SchedulerService, create_schedule):
        record = create_schedule(send_at=in_future())

        job = service.schedule_message(record)

        assert job is not None
        assert job.send_at == record.send_at
        assert_single_job(service, record.schedule_id)

    @pytest.mark.asyncio
    async def test_reschedule_replaces_job(self, service: SchedulerService, create_schedule):
        record = create_schedule(send_at=in_future(60))
        first = service.schedule_message(record)

        record.send_at = in_future(120)
        second = service.schedule_message(record)

        assert first is not second
        assert first.cancelled is True
        assert service.registry.get(record.schedule_id) is second
        assert_single_job(service, record.schedule_id)

    @pytest.mark.asyncio
    async def test_past_due_schedule_creates_no_job(
        self, service: SchedulerService, store: RecordStore, create_schedule, transport
    ):
        record = create_schedule(send_at=in_past(), selector=ExplicitRecipients(["A"]))

        assert service.schedule_message(record) is None

        assert record.schedule_id not in service.registry
        await asyncio.sleep(0.05)
        assert transport.calls == []
        assert_sent(store, record.schedule_id, expected=False)

    @pytest.mark.asyncio
    async def test_past_due_reschedule_drops_existing_job(
        self, service: SchedulerService, create_schedule
    ):
        record = create_schedule(send_at=in_future())
        job = service.schedule_message(record)

        record.send_at = in_past()
        assert service.schedule_message(record) is None

        assert job.cancelled is True
        assert record.schedule_id not in service.registry

    @pytest.mark.asyncio
    async def test_pending_jobs_ordered_by_send_time(
        self, service: SchedulerService, create_schedule
    ):
        later = create_schedule(send_at=in_future(600))
        sooner = create_schedule(send_at=in_future(60))
        service.schedule_message(later)
        service.schedule_message(sooner)

        ids = [job.schedule_id for job in service.pending_jobs()]
        assert ids == [sooner.schedule_id, later.schedule_id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "record",
        [
            ScheduleRecord(schedule_id=None, message="hi", send_at=in_future()),
            ScheduleRecord(schedule_id=1, message="", send_at=in_future()),
            ScheduleRecord(schedule_id=1, message="hi", send_at=None),
        ],
    )
    async def test_invalid_record_rejected(self, service: SchedulerService, record):
        with pytest.raises(InvalidScheduleError):
            service.schedule_message(record)

        assert len(service.registry) == 0


class TestCancelSchedule:
    """Cancellation of pending jobs."""

    @pytest.mark.asyncio
    async def test_cancel_unknown_id_is_noop(self, service: SchedulerService):
        assert service.cancel_schedule(12345) is False

    @pytest.mark.asyncio
    async def test_cancel_pending_job_prevents_delivery(
        self, service: SchedulerService, store: RecordStore, create_schedule, transport
    ):
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A"]))
        job = service.schedule_message(record)

        assert service.cancel_schedule(record.schedule_id) is True

        await asyncio.sleep(0.15)
        assert job.cancelled is True
        assert transport.calls == []
        assert record.schedule_id not in service.registry
        assert_sent(store, record.schedule_id, expected=False)

    @pytest.mark.asyncio
    async def test_cancel_twice(self, service: SchedulerService, create_schedule):
        record = create_schedule(send_at=in_future())
        service.schedule_message(record)

        assert service.cancel_schedule(record.schedule_id) is True
        assert service.cancel_schedule(record.schedule_id) is False

    @pytest.mark.asyncio
    async def test_cancel_after_fire_is_noop(
        self, service: SchedulerService, create_schedule, transport
    ):
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A"]))
        service.schedule_message(record)
        await wait_until_dispatched(service, record.schedule_id)

        assert service.cancel_schedule(record.schedule_id) is False
        assert transport.addresses == ["A"]

    @pytest.mark.asyncio
    async def test_cancel_during_dispatch_does_not_interrupt(
        self, service: SchedulerService, store: RecordStore, create_schedule, transport
    ):
        transport.gate = asyncio.Event()
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A", "B"]))
        job = service.schedule_message(record)

        while not transport.calls:
            await asyncio.sleep(0.01)
        assert job.fired is True

        assert service.cancel_schedule(record.schedule_id) is False
        assert service.registry.get(record.schedule_id) is job

        transport.gate.set()
        await service.wait_for_dispatches()

        assert transport.addresses == ["A", "B"]
        assert_sent(store, record.schedule_id)
        assert record.schedule_id not in service.registry


class TestFiring:
    """Dispatch triggered by the timer."""

    @pytest.mark.asyncio
    async def test_fire_delivers_and_marks_sent(
        self, service: SchedulerService, store: RecordStore, create_schedule, transport
    ):
        record = create_schedule(
            message="good morning",
            send_at=in_future(0.05),
            selector=ExplicitRecipients(["A", "B"]),
        )
        service.schedule_message(record)

        await wait_until_dispatched(service, record.schedule_id)

        assert transport.calls == [("A", "good morning"), ("B", "good morning")]
        assert_sent(store, record.schedule_id)
        assert record.schedule_id not in service.registry

    @pytest.mark.asyncio
    async def test_failures_still_release_job(self, store: RecordStore, create_schedule):
        transport = FakeTransport(failing={"A", "B"})
        service = SchedulerService(store=store, transport=transport)
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A", "B"]))
        service.schedule_message(record)

        await wait_until_dispatched(service, record.schedule_id)

        assert transport.addresses == ["A", "B"]
        assert_sent(store, record.schedule_id)
        assert len(service.registry) == 0

    @pytest.mark.asyncio
    async def test_store_error_during_dispatch_releases_job(
        self, store: RecordStore, create_schedule, transport, caplog
    ):
        failing_store = MagicMock(wraps=store)
        failing_store.mark_schedule_sent.side_effect = StoreUnavailableError("database is locked")
        service = SchedulerService(store=failing_store, transport=transport)
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A"]))
        service.schedule_message(record)

        await wait_until_dispatched(service, record.schedule_id)

        assert transport.addresses == ["A"]
        assert record.schedule_id not in service.registry
        assert "database is locked" in caplog.text

    @pytest.mark.asyncio
    async def test_schedule_deleted_before_fire(
        self, service: SchedulerService, store: RecordStore, create_schedule, transport
    ):
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A"]))
        service.schedule_message(record)
        store.delete_schedule(record.schedule_id)

        await wait_until_dispatched(service, record.schedule_id)

        assert transport.calls == []
        assert len(service.registry) == 0

    @pytest.mark.asyncio
    async def test_replacement_survives_finished_dispatch(
        self, service: SchedulerService, create_schedule, transport
    ):
        """Rescheduling mid-dispatch must not be undone when the old cycle ends."""
        transport.gate = asyncio.Event()
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A"]))
        service.schedule_message(record)

        while not transport.calls:
            await asyncio.sleep(0.01)

        record.send_at = in_future(3600)
        replacement = service.schedule_message(record)

        transport.gate.set()
        await service.wait_for_dispatches()

        assert service.registry.get(record.schedule_id) is replacement


class TestShutdown:
    """Service shutdown."""

    @pytest.mark.asyncio
    async def test_shutdown_cancels_timers_and_closes_transport(
        self, service: SchedulerService, create_schedule, transport
    ):
        first = service.schedule_message(create_schedule(send_at=in_future()))
        second = service.schedule_message(create_schedule(send_at=in_future()))

        await service.shutdown()

        assert first.cancelled is True
        assert second.cancelled is True
        assert len(service.registry) == 0
        assert transport.closed is True

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_inflight_dispatch(
        self, service: SchedulerService, store: RecordStore, create_schedule, transport
    ):
        transport.gate = asyncio.Event()
        record = create_schedule(send_at=in_future(0.05), selector=ExplicitRecipients(["A"]))
        service.schedule_message(record)

        while not transport.calls:
            await asyncio.sleep(0.01)

        asyncio.get_running_loop().call_later(0.05, transport.gate.set)
        await service.shutdown()

        assert_sent(store, record.schedule_id)
        assert transport.closed is True
