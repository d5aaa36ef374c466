"""
Recovery Manager for the message scheduler.

Rebuilds the in-memory job registry from durable state on startup:
- Every unsent schedule goes back through the normal scheduling path
- Sent schedules are never rescheduled
- Past-due unsent schedules are left alone by the scheduling policy

Recovery is idempotent: running it twice leaves one job per pending schedule.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Callable, Optional

from .dispatcher import RecordStoreProtocol
from .entities import ScheduleRecord
from .errors import InvalidScheduleError
from .registry import ScheduledJob


logger = logging.getLogger(__name__)


@dataclass
class RecoveryStats:
    """Counts from one recovery pass."""

    total: int = 0
    already_sent: int = 0
    scheduled: int = 0
    skipped_past_due: int = 0
    invalid: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class RecoveryManager:
    """Reconstructs pending jobs after a restart."""

    def __init__(
        self,
        store: RecordStoreProtocol,
        schedule_message: Callable[[ScheduleRecord], Optional[ScheduledJob]],
    ):
        """
        Initialize RecoveryManager.

        Args:
            store: Record store to read schedules from
            schedule_message: Scheduling entry point; returns the job or None
        """
        self.store = store
        self.schedule_message = schedule_message

    def recover_on_startup(self) -> RecoveryStats:
        """
        Reschedule every unsent schedule.

        Store errors propagate; a startup that cannot read schedules must fail.
        Records that cannot be scheduled are logged and counted as invalid.

        Returns:
            Recovery statistics
        """
        stats = RecoveryStats()
        logger.info("Resuming pending schedules...")

        for record in self.store.list_schedules():
            stats.total += 1

            if record.sent:
                stats.already_sent += 1
                continue

            try:
                job = self.schedule_message(record)
            except InvalidScheduleError as e:
                logger.error(f"Skipping unusable schedule {record.schedule_id}: {e}")
                stats.invalid += 1
                continue

            if job is None:
                stats.skipped_past_due += 1
            else:
                stats.scheduled += 1

        logger.info(
            f"Recovery complete: {stats.scheduled} scheduled, "
            f"{stats.skipped_past_due} past due, "
            f"{stats.already_sent} already sent, "
            f"{stats.invalid} invalid"
        )
        return stats
