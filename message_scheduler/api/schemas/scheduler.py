"""
Scheduler status schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PendingJobResponse(BaseModel):
    """An armed timer."""

    schedule_id: int
    send_at: datetime


class RecoveryStatsResponse(BaseModel):
    """Counts from the startup recovery pass."""

    total: int = 0
    already_sent: int = 0
    scheduled: int = 0
    skipped_past_due: int = 0
    invalid: int = 0


class SchedulerStatusResponse(BaseModel):
    """Scheduler status."""

    pending_count: int = Field(..., description="Number of armed timers")
    pending_jobs: List[PendingJobResponse] = Field(default_factory=list)
    recovery_stats: Optional[RecoveryStatsResponse] = Field(
        default=None,
        description="Startup recovery statistics"
    )
