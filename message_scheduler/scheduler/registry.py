"""
In-memory job registry.

Maps schedule id -> the live timed job for that schedule.

Invariants:
- At most one job per schedule id at any time
- Installing a job for an id that already has one cancels the old job first
- A job leaves the registry exactly once (cancelled or finished firing)

Registry operations never suspend; they are serialized with a lock so the
map stays consistent even if touched from more than one thread.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


logger = logging.getLogger(__name__)


@dataclass
class ScheduledJob:
    """
    Runtime representation of a pending schedule.

    Not persisted. `fired` flips once the timer has started the dispatch
    cycle; cancelling after that point no longer has any effect.
    """

    schedule_id: int
    send_at: datetime
    handle: Optional[asyncio.TimerHandle] = None
    fired: bool = False

    def cancel(self) -> None:
        """Prevent the timer from firing. No-op once fired."""
        if self.handle is not None and not self.fired:
            self.handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self.handle is not None and self.handle.cancelled()


class JobRegistry:
    """
    Pure id -> job map with replace-on-upsert semantics.

    No iteration order is promised to callers.
    """

    def __init__(self):
        self._jobs: dict[int, ScheduledJob] = {}
        self._lock = threading.RLock()

    def upsert(self, schedule_id: int, job: ScheduledJob) -> None:
        """Install `job`, cancelling any job already held for the id."""
        with self._lock:
            existing = self._jobs.get(schedule_id)
            if existing is not None and existing is not job:
                logger.debug(f"Replacing job for schedule {schedule_id}")
                existing.cancel()
            self._jobs[schedule_id] = job

    def remove(
        self,
        schedule_id: int,
        job: Optional[ScheduledJob] = None,
    ) -> Optional[ScheduledJob]:
        """
        Remove the job for `schedule_id`. Absent ids are a no-op.

        Args:
            schedule_id: Schedule whose job should be removed
            job: If given, only remove when the held job is this one

        Returns:
            The removed job, or None if nothing was removed
        """
        with self._lock:
            current = self._jobs.get(schedule_id)
            if current is None:
                return None
            if job is not None and current is not job:
                return None
            del self._jobs[schedule_id]
            return current

    def get(self, schedule_id: int) -> Optional[ScheduledJob]:
        """Look up the job for `schedule_id`; None if fired or never scheduled."""
        with self._lock:
            return self._jobs.get(schedule_id)

    def snapshot(self) -> list[ScheduledJob]:
        """Copy of the currently held jobs."""
        with self._lock:
            return list(self._jobs.values())

    def __contains__(self, schedule_id: int) -> bool:
        with self._lock:
            return schedule_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
