"""
Message Scheduler Core Module.

- Job registry: schedule id -> cancellable timed job
- Dispatch: fire-time recipient resolution and delivery
- Recovery: rebuild pending jobs from the store after a restart
"""

from .entities import (
    Recipient,
    ScheduleRecord,
    GroupRecipients,
    ExplicitRecipients,
    NoRecipients,
    RecipientSelector,
    utc_now,
    to_utc,
)
from .errors import (
    SchedulerError,
    InvalidScheduleError,
    ScheduleNotFoundError,
    RecipientNotFoundError,
    RecipientListParseError,
    StoreUnavailableError,
    TransportError,
)
from .store import RecordStore
from .registry import JobRegistry, ScheduledJob
from .dispatcher import (
    DeliveryResult,
    DispatchReport,
    TransportClient,
    dispatch_schedule,
    resolve_recipients,
)
from .recovery import RecoveryManager, RecoveryStats
from .service import SchedulerService

__all__ = [
    # Entities
    "Recipient",
    "ScheduleRecord",
    "GroupRecipients",
    "ExplicitRecipients",
    "NoRecipients",
    "RecipientSelector",
    "utc_now",
    "to_utc",
    # Errors
    "SchedulerError",
    "InvalidScheduleError",
    "ScheduleNotFoundError",
    "RecipientNotFoundError",
    "RecipientListParseError",
    "StoreUnavailableError",
    "TransportError",
    # Store
    "RecordStore",
    # Registry
    "JobRegistry",
    "ScheduledJob",
    # Dispatch
    "DeliveryResult",
    "DispatchReport",
    "TransportClient",
    "dispatch_schedule",
    "resolve_recipients",
    # Recovery
    "RecoveryManager",
    "RecoveryStats",
    # Service
    "SchedulerService",
]
