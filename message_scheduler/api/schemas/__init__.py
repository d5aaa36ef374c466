"""
API Schemas package.
"""

from .numbers import (
    NumberCreateRequest,
    NumberResponse,
    NumberListResponse,
    GroupListResponse,
    NumberDeleteResponse,
)
from .schedules import (
    ScheduleCreateRequest,
    ScheduleResponse,
    ScheduleListResponse,
    ScheduleDeleteResponse,
)
from .scheduler import (
    PendingJobResponse,
    RecoveryStatsResponse,
    SchedulerStatusResponse,
)

__all__ = [
    "NumberCreateRequest",
    "NumberResponse",
    "NumberListResponse",
    "GroupListResponse",
    "NumberDeleteResponse",
    "ScheduleCreateRequest",
    "ScheduleResponse",
    "ScheduleListResponse",
    "ScheduleDeleteResponse",
    "PendingJobResponse",
    "RecoveryStatsResponse",
    "SchedulerStatusResponse",
]
