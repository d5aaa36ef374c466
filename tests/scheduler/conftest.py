"""
Scheduler Test Fixtures.

Base fixtures:
  - Empty database in a temp file
  - Recording fake transport with configurable failures
  - SchedulerService wired to both

Per-test helpers:
  - Schedule factory (sent/unsent, any selector, any send time)
  - Waiting for a fired job to finish its dispatch cycle
"""

import asyncio
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Generator, Iterable, Optional

import pytest

from message_scheduler.scheduler import (
    NoRecipients,
    RecipientSelector,
    RecordStore,
    ScheduleRecord,
    SchedulerService,
    TransportError,
    utc_now,
)


class FakeTransport:
    """
    Transport double that records every delivery attempt.

    Addresses listed in `failing` raise TransportError. When `gate` is set,
    each delivery waits on it, which lets tests hold a dispatch in flight.
    """

    def __init__(self, failing: Iterable[str] = ()):
        self.calls: list[tuple[str, str]] = []
        self.failing = set(failing)
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    async def deliver(self, address: str, message: str) -> None:
        self.calls.append((address, message))
        if self.gate is not None:
            await self.gate.wait()
        if address in self.failing:
            raise TransportError(address, "simulated failure")

    async def aclose(self) -> None:
        self.closed = True

    @property
    def addresses(self) -> list[str]:
        return [address for address, _ in self.calls]


def in_future(seconds: float = 3600) -> datetime:
    return utc_now() + timedelta(seconds=seconds)


def in_past(seconds: float = 3600) -> datetime:
    return utc_now() - timedelta(seconds=seconds)


async def wait_until_dispatched(
    service: SchedulerService,
    schedule_id: int,
    timeout: float = 2.0,
) -> None:
    """Wait until the job for `schedule_id` has fired and left the registry."""
    deadline = asyncio.get_running_loop().time() + timeout
    while schedule_id in service.registry:
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"Schedule {schedule_id} was not dispatched in {timeout}s")
        await asyncio.sleep(0.01)
    await service.wait_for_dispatches()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield db_path

    Path(db_path).unlink(missing_ok=True)
    Path(f"{db_path}-wal").unlink(missing_ok=True)
    Path(f"{db_path}-shm").unlink(missing_ok=True)


@pytest.fixture
def store(temp_db_path: str) -> RecordStore:
    """Create a fresh RecordStore with empty database."""
    return RecordStore(temp_db_path)


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def transport() -> FakeTransport:
    """Create a recording transport where every delivery succeeds."""
    return FakeTransport()


@pytest.fixture
def service(store: RecordStore, transport: FakeTransport) -> Generator[SchedulerService, None, None]:
    """Create a SchedulerService; pending timers are cancelled afterwards."""
    svc = SchedulerService(store=store, transport=transport)

    yield svc

    for job in svc.registry.snapshot():
        job.cancel()


# =============================================================================
# Record Factory Fixtures
# =============================================================================


@pytest.fixture
def create_schedule(store: RecordStore) -> Callable:
    """
    Factory fixture for creating stored schedules.

    Returns a function that persists a schedule and returns the fresh record.
    """

    def _create(
        message: str = "hello",
        send_at: Optional[datetime] = None,
        selector: Optional[RecipientSelector] = None,
        sent: bool = False,
    ) -> ScheduleRecord:
        record = store.add_schedule(
            message,
            send_at if send_at is not None else in_future(),
            selector if selector is not None else NoRecipients(),
        )
        if sent:
            store.mark_schedule_sent(record.schedule_id)
            record = store.get_schedule(record.schedule_id)
        return record

    return _create


# =============================================================================
# Assertion Helpers
# =============================================================================


def assert_single_job(service: SchedulerService, schedule_id: int) -> None:
    """Assert the registry holds exactly one job for the id."""
    matching = [j for j in service.registry.snapshot() if j.schedule_id == schedule_id]
    assert len(matching) == 1, f"Expected one job for {schedule_id}, got {len(matching)}"


def assert_sent(store: RecordStore, schedule_id: int, expected: bool = True) -> None:
    """Assert the stored sent flag."""
    record = store.get_schedule(schedule_id)
    assert record is not None, f"Schedule {schedule_id} not found"
    assert record.sent is expected, f"Expected sent={expected}, got {record.sent}"
