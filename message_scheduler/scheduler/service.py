"""
Scheduler Service - Main entry point for the dispatch engine.

This service orchestrates:
- RecordStore (durable numbers and schedules)
- JobRegistry (in-memory schedule id -> timed job)
- Transport (message delivery)
- RecoveryManager (startup rebuild of the registry)

Timers run on the asyncio event loop that calls schedule_message(). Each
firing starts one dispatch task; the job is removed from the registry when
that task finishes, whatever its outcome.

Usage:
    service = SchedulerService.create(settings)
    service.resume_schedules()       # once, before serving requests
    service.schedule_message(record)
    service.cancel_schedule(schedule_id)
    await service.shutdown()
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from .dispatcher import (
    DispatchReport,
    RecordStoreProtocol,
    TransportClient,
    dispatch_schedule,
)
from .entities import ScheduleRecord, to_utc, utc_now
from .errors import InvalidScheduleError
from .recovery import RecoveryManager, RecoveryStats
from .registry import JobRegistry, ScheduledJob
from .store import RecordStore


logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Creates, replaces, cancels and fires scheduled message jobs.

    Provides:
    - Component wiring from settings
    - Startup recovery
    - Graceful shutdown (pending timers are dropped, in-flight dispatches finish)
    """

    def __init__(
        self,
        store: RecordStoreProtocol,
        transport: TransportClient,
        registry: Optional[JobRegistry] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize SchedulerService.

        Use SchedulerService.create() for construction from settings.

        Args:
            store: Record store handle, read fresh at every fire
            transport: Message transport, closed on shutdown
            registry: Job registry; a private one is created if omitted
            clock: Returns the current UTC time
        """
        self.store = store
        self.transport = transport
        self.registry = registry if registry is not None else JobRegistry()
        self.clock = clock
        self.recovery_manager = RecoveryManager(store, self.schedule_message)

        self.recovery_stats: Optional[RecoveryStats] = None
        self._inflight: set[asyncio.Task] = set()

    @classmethod
    def create(cls, settings) -> "SchedulerService":
        """
        Create a SchedulerService with store and transport from settings.

        Args:
            settings: message_scheduler.infra.config.Settings

        Returns:
            Configured SchedulerService
        """
        from message_scheduler.transport import build_transport

        store = RecordStore(settings.db_path)
        transport = build_transport(settings)
        return cls(store=store, transport=transport)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def schedule_message(self, record: ScheduleRecord) -> Optional[ScheduledJob]:
        """
        Create or replace the job for a schedule record.

        Any existing job for the id is cancelled first. A send time that is
        not strictly in the future creates no job; the schedule stays unsent.

        Must be called from a running event loop.

        Args:
            record: The schedule to arm

        Returns:
            The installed job, or None if the send time has passed

        Raises:
            InvalidScheduleError: If the record lacks id, message or send time
        """
        if record.schedule_id is None:
            raise InvalidScheduleError("Schedule has no id")
        if not record.message:
            raise InvalidScheduleError(f"Schedule {record.schedule_id} has an empty message")
        if record.send_at is None:
            raise InvalidScheduleError(f"Schedule {record.schedule_id} has no send time")

        schedule_id = record.schedule_id
        existing = self.registry.remove(schedule_id)
        if existing is not None:
            existing.cancel()
            logger.info(f"Rescheduling schedule {schedule_id}")

        send_at = to_utc(record.send_at)
        delay = (send_at - self.clock()).total_seconds()
        if delay <= 0:
            logger.info(
                f"Schedule {schedule_id} is past due ({send_at.isoformat()}), not scheduling"
            )
            return None

        loop = asyncio.get_running_loop()
        job = ScheduledJob(schedule_id=schedule_id, send_at=send_at)
        job.handle = loop.call_later(delay, self._fire, job)
        self.registry.upsert(schedule_id, job)

        logger.info(f"Schedule {schedule_id} armed for {send_at.isoformat()} (in {delay:.1f}s)")
        return job

    def cancel_schedule(self, schedule_id: int) -> bool:
        """
        Cancel the pending job for a schedule.

        Absent ids (finished, cancelled, never scheduled) are a no-op. A job
        that has already fired stays registered until its dispatch finishes.

        Returns:
            True if a pending job was cancelled
        """
        job = self.registry.get(schedule_id)
        if job is None:
            logger.debug(f"No pending job for schedule {schedule_id}")
            return False

        if job.fired:
            logger.info(f"Schedule {schedule_id} is already dispatching, nothing to cancel")
            return False

        if self.registry.remove(schedule_id, job) is None:
            return False
        job.cancel()
        logger.info(f"Cancelled schedule {schedule_id}")
        return True

    def resume_schedules(self) -> RecoveryStats:
        """
        Rebuild the registry from unsent schedules in the store.

        Call once during startup, before accepting new schedules.

        Raises:
            StoreUnavailableError: If schedules cannot be read
        """
        self.recovery_stats = self.recovery_manager.recover_on_startup()
        return self.recovery_stats

    def pending_jobs(self) -> list[ScheduledJob]:
        """List pending jobs ordered by send time."""
        return sorted(self.registry.snapshot(), key=lambda j: (j.send_at, j.schedule_id))

    # =========================================================================
    # Firing
    # =========================================================================

    def _fire(self, job: ScheduledJob) -> None:
        """Timer callback: start the dispatch cycle for `job`."""
        job.fired = True
        task = asyncio.create_task(self._run_dispatch(job))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_dispatch(self, job: ScheduledJob) -> Optional[DispatchReport]:
        """Dispatch one fired job; the registry entry is always released."""
        try:
            return await dispatch_schedule(job.schedule_id, self.store, self.transport)
        except Exception as e:
            logger.error(f"Dispatch of schedule {job.schedule_id} failed: {e}", exc_info=True)
            return None
        finally:
            self.registry.remove(job.schedule_id, job)

    async def wait_for_dispatches(self) -> list[Optional[DispatchReport]]:
        """Wait for every in-flight dispatch cycle to finish."""
        if not self._inflight:
            return []
        return list(await asyncio.gather(*list(self._inflight)))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def shutdown(self) -> None:
        """
        Stop the service.

        Pending timers are cancelled (they are recovered from the store on
        next start); in-flight dispatches are allowed to finish.
        """
        logger.info("Stopping scheduler service...")
        for job in self.registry.snapshot():
            if self.registry.remove(job.schedule_id, job) is not None:
                job.cancel()

        await self.wait_for_dispatches()

        await self.transport.aclose()
        logger.info("Scheduler service stopped")
