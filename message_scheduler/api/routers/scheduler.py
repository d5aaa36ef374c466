"""
Scheduler router.

Read-only view of the in-memory job registry.
"""

from fastapi import APIRouter

from ..schemas.scheduler import (
    PendingJobResponse,
    RecoveryStatsResponse,
    SchedulerStatusResponse,
)
from .._scheduler_state import get_scheduler_service


router = APIRouter()


@router.get("/status", response_model=SchedulerStatusResponse)
async def get_scheduler_status():
    """
    Get scheduler status.

    Returns:
    - pending_count / pending_jobs: armed timers ordered by send time
    - recovery_stats: outcome of the startup recovery pass
    """
    service = get_scheduler_service()

    pending = [
        PendingJobResponse(schedule_id=job.schedule_id, send_at=job.send_at)
        for job in service.pending_jobs()
    ]
    stats = service.recovery_stats

    return SchedulerStatusResponse(
        pending_count=len(pending),
        pending_jobs=pending,
        recovery_stats=RecoveryStatsResponse(**stats.to_dict()) if stats else None,
    )
