"""
Scheduler-specific exceptions.

Failure semantics:
- Store errors propagate to the caller of schedule/recovery entry points
- Delivery and recipient-list errors are caught per dispatch cycle and logged
"""


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""
    pass


class InvalidScheduleError(SchedulerError):
    """
    Raised when a schedule record cannot be scheduled.

    Examples:
    - Missing identity
    - Empty message body
    - Missing send time
    """
    pass


class ScheduleNotFoundError(SchedulerError):
    """Raised when a requested schedule does not exist."""

    def __init__(self, schedule_id: int):
        self.schedule_id = schedule_id
        super().__init__(f"Schedule not found: {schedule_id}")


class RecipientNotFoundError(SchedulerError):
    """Raised when a requested recipient does not exist."""

    def __init__(self, recipient_id: int):
        self.recipient_id = recipient_id
        super().__init__(f"Recipient not found: {recipient_id}")


class RecipientListParseError(SchedulerError):
    """
    Raised when a persisted explicit recipient list cannot be parsed.

    Dispatch treats this as an empty recipient set for the schedule.
    """

    def __init__(self, raw: object, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Malformed recipient list ({reason}): {raw!r}")


class StoreUnavailableError(SchedulerError):
    """Raised when the record store cannot be read or written."""
    pass


class TransportError(SchedulerError):
    """
    Raised when a single message delivery fails.

    Carries the target address so dispatch can attribute the failure.
    """

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Delivery to {address} failed: {reason}")
