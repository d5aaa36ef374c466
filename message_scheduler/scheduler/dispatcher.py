"""
Fire-time dispatch for scheduled messages.

One dispatch cycle per fired job:
1. Re-read the schedule from the store (never a cached copy)
2. Resolve the recipient set (group members, explicit list, or nobody)
3. Deduplicate addresses
4. Attempt delivery once per address, collecting a result for each
5. Mark the schedule sent, whatever the delivery outcomes were

What dispatch MUST NOT do:
- Retry a failed delivery
- Let one failed delivery abort the others
- Touch the job registry (the scheduler service owns cleanup)
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from .entities import (
    ExplicitRecipients,
    GroupRecipients,
    Recipient,
    ScheduleRecord,
)
from .errors import RecipientListParseError, TransportError


logger = logging.getLogger(__name__)


class RecordStoreProtocol(Protocol):
    """Store operations consumed by the dispatch engine."""

    def get_schedule(self, schedule_id: int) -> Optional[ScheduleRecord]:
        ...

    def list_schedules(self) -> list[ScheduleRecord]:
        ...

    def list_recipients_by_group(self, group_name: str) -> list[Recipient]:
        ...

    def mark_schedule_sent(self, schedule_id: int) -> bool:
        ...


@runtime_checkable
class TransportClient(Protocol):
    """Messaging transport consumed by the dispatch engine."""

    async def deliver(self, address: str, message: str) -> Optional[str]:
        """
        Deliver `message` to `address`.

        Returns:
            A provider message id, if the transport has one

        Raises:
            TransportError: If the delivery failed
        """
        ...

    async def aclose(self) -> None:
        """Release any held resources."""
        ...


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt."""

    address: str
    success: bool
    error: Optional[str] = None


@dataclass
class DispatchReport:
    """Aggregate outcome of one dispatch cycle."""

    schedule_id: int
    results: list[DeliveryResult] = field(default_factory=list)
    marked_sent: bool = False
    skipped_reason: Optional[str] = None

    @property
    def delivered(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)


def resolve_recipients(
    record: ScheduleRecord,
    store: RecordStoreProtocol,
) -> list[str]:
    """
    Resolve the unique addresses a schedule targets right now.

    Group membership is looked up at call time. A malformed explicit list
    is logged and resolves to no recipients.

    Returns:
        Unique addresses in first-seen order
    """
    selector = record.selector
    addresses: list[str] = []

    if isinstance(selector, GroupRecipients):
        addresses = [r.number for r in store.list_recipients_by_group(selector.group_name)]
    elif isinstance(selector, ExplicitRecipients):
        try:
            addresses = selector.addresses()
        except RecipientListParseError as e:
            logger.error(f"Schedule {record.schedule_id}: {e}")
            addresses = []

    return list(dict.fromkeys(addresses))


async def deliver_all(
    addresses: list[str],
    message: str,
    transport: TransportClient,
) -> list[DeliveryResult]:
    """Attempt delivery to every address; failures never stop the loop."""
    results = []
    for address in addresses:
        try:
            await transport.deliver(address, message)
            logger.info(f"Sent message to {address}")
            results.append(DeliveryResult(address=address, success=True))
        except TransportError as e:
            logger.error(f"Failed to send message to {address}: {e.reason}")
            results.append(DeliveryResult(address=address, success=False, error=e.reason))
        except Exception as e:
            logger.error(f"Unexpected error sending to {address}: {e}", exc_info=True)
            results.append(DeliveryResult(address=address, success=False, error=str(e)))
    return results


async def dispatch_schedule(
    schedule_id: int,
    store: RecordStoreProtocol,
    transport: TransportClient,
) -> DispatchReport:
    """
    Run one dispatch cycle for `schedule_id`.

    Args:
        schedule_id: The schedule whose job fired
        store: Live record store handle
        transport: Messaging transport

    Returns:
        DispatchReport with one DeliveryResult per unique recipient

    Raises:
        StoreUnavailableError: If the store cannot be read or written
    """
    report = DispatchReport(schedule_id=schedule_id)

    record = store.get_schedule(schedule_id)
    if record is None:
        logger.warning(f"Schedule {schedule_id} fired but no longer exists")
        report.skipped_reason = "missing"
        return report

    if record.sent:
        logger.warning(f"Schedule {schedule_id} fired but is already sent")
        report.skipped_reason = "already_sent"
        return report

    addresses = resolve_recipients(record, store)
    logger.info(f"Dispatching schedule {schedule_id} to {len(addresses)} recipient(s)")

    report.results = await deliver_all(addresses, record.message, transport)

    # "sent" records that delivery was attempted, not that it succeeded
    store.mark_schedule_sent(schedule_id)
    report.marked_sent = True

    logger.info(
        f"Schedule {schedule_id} dispatched: "
        f"{report.delivered} delivered, {report.failed} failed"
    )
    return report
