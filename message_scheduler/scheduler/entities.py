"""
Scheduler Domain Entities.

- Recipient: An addressable WhatsApp number, optionally tagged with a group
- ScheduleRecord: A persisted request to send a message at a future time
- Recipient selectors: Which recipients a schedule targets, chosen at creation

Selectors are a tagged variant (GroupRecipients | ExplicitRecipients |
NoRecipients). The store persists them as the two nullable columns
`group_name` and `numbers`; at most one of them is ever set.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

from .errors import RecipientListParseError


def utc_now() -> datetime:
    """Get current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime, assume_tz=timezone.utc) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are interpreted in `assume_tz`.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=assume_tz)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO timestamp into a UTC datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(value))


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an ISO UTC timestamp for storage."""
    return to_utc(value).isoformat()


# =============================================================================
# Recipient Selectors
# =============================================================================


@dataclass(frozen=True)
class GroupRecipients:
    """Target every recipient whose group label matches at fire time."""

    group_name: str

    def to_columns(self) -> tuple[Optional[str], Optional[str]]:
        return self.group_name, None


@dataclass(frozen=True)
class ExplicitRecipients:
    """
    Target an explicit list of numbers.

    `numbers` holds either a sequence of addresses (new schedules) or the
    JSON text read back from storage. Parsing is deferred to fire time so a
    corrupt row never blocks listing or recovery.
    """

    numbers: Union[Sequence[str], str]

    def addresses(self) -> list[str]:
        """
        Return the listed addresses as strings.

        Raises:
            RecipientListParseError: If the stored list is not a JSON array
        """
        raw = self.numbers
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise RecipientListParseError(self.numbers, str(e)) from e

        if not isinstance(raw, (list, tuple)):
            raise RecipientListParseError(self.numbers, "expected a list")

        addresses = []
        for item in raw:
            if isinstance(item, (str, int)) and not isinstance(item, bool):
                addresses.append(str(item))
            else:
                raise RecipientListParseError(
                    self.numbers, f"unsupported entry {item!r}"
                )
        return addresses

    def to_columns(self) -> tuple[Optional[str], Optional[str]]:
        if isinstance(self.numbers, str):
            return None, self.numbers
        return None, json.dumps(list(self.numbers))


@dataclass(frozen=True)
class NoRecipients:
    """Target nobody; dispatch resolves to an empty set."""

    def to_columns(self) -> tuple[Optional[str], Optional[str]]:
        return None, None


RecipientSelector = Union[GroupRecipients, ExplicitRecipients, NoRecipients]


def selector_from_columns(
    group_name: Optional[str],
    numbers: Optional[str],
) -> RecipientSelector:
    """
    Rebuild a selector from its stored columns.

    A group label takes precedence over a numbers list.
    """
    if group_name:
        return GroupRecipients(group_name)
    if numbers is not None:
        return ExplicitRecipients(numbers)
    return NoRecipients()


# =============================================================================
# Records
# =============================================================================


@dataclass
class Recipient:
    """A WhatsApp number known to the store."""

    recipient_id: int
    number: str
    group_name: Optional[str] = None


@dataclass
class ScheduleRecord:
    """
    A persisted request to send `message` at `send_at`.

    `sent` transitions False -> True exactly once, after delivery has been
    attempted. It means "attempted", not "delivered".
    """

    schedule_id: int
    message: str
    send_at: datetime
    selector: RecipientSelector = field(default_factory=NoRecipients)
    sent: bool = False
