"""
Schedules router.

Endpoints under /schedules/* for creating, listing and deleting scheduled
messages. Every mutation writes the store first, then arms or cancels the
in-memory job.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from message_scheduler.scheduler import (
    ExplicitRecipients,
    GroupRecipients,
    NoRecipients,
    RecipientListParseError,
    ScheduleNotFoundError,
    ScheduleRecord,
    SchedulerService,
    StoreUnavailableError,
    to_utc,
)
from ..schemas.schedules import (
    ScheduleCreateRequest,
    ScheduleResponse,
    ScheduleListResponse,
    ScheduleDeleteResponse,
)
from .._scheduler_state import get_scheduler_service, get_settings


logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(record: ScheduleRecord, service: SchedulerService) -> ScheduleResponse:
    group_name = None
    numbers = None

    selector = record.selector
    if isinstance(selector, GroupRecipients):
        group_name = selector.group_name
    elif isinstance(selector, ExplicitRecipients):
        try:
            numbers = selector.addresses()
        except RecipientListParseError:
            numbers = None

    return ScheduleResponse(
        id=record.schedule_id,
        message=record.message,
        send_at=record.send_at,
        group_name=group_name,
        numbers=numbers,
        sent=record.sent,
        pending=record.schedule_id in service.registry,
    )


@router.get("", response_model=ScheduleListResponse)
async def list_schedules():
    """List all schedules by send time."""
    service = get_scheduler_service()

    try:
        records = service.store.list_schedules()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    schedules = [_to_response(r, service) for r in records]
    return ScheduleListResponse(
        schedules=schedules,
        total=len(schedules),
        pending_count=sum(1 for s in schedules if s.pending),
    )


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(request: ScheduleCreateRequest):
    """
    Schedule a message.

    - `group`: recipients are the group's members at send time
    - `number_ids`: stored numbers, resolved to addresses now; unknown ids are dropped
    - neither: the schedule has no recipients

    A send time that has already passed is stored but never sent.
    """
    service = get_scheduler_service()
    settings = get_settings()
    store = service.store

    send_at = to_utc(request.send_at, settings.tzinfo)

    try:
        if request.group is not None:
            selector = GroupRecipients(request.group)
        elif request.number_ids is not None:
            numbers = []
            for number_id in request.number_ids:
                recipient = store.get_recipient(number_id)
                if recipient is None:
                    logger.warning(f"Ignoring unknown number id {number_id}")
                    continue
                numbers.append(recipient.number)
            selector = ExplicitRecipients(tuple(numbers))
        else:
            selector = NoRecipients()

        record = store.add_schedule(request.message, send_at, selector)
        service.schedule_message(record)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    return _to_response(record, service)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(schedule_id: int):
    """Get a schedule by id."""
    service = get_scheduler_service()

    try:
        record = service.store.get_schedule(schedule_id)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    if record is None:
        raise HTTPException(status_code=404, detail=f"Schedule not found: {schedule_id}")

    return _to_response(record, service)


@router.delete("/{schedule_id}", response_model=ScheduleDeleteResponse)
async def delete_schedule(schedule_id: int):
    """
    Cancel a schedule's pending timer and delete the record.

    A dispatch already in progress is not interrupted.
    """
    service = get_scheduler_service()

    cancelled = service.cancel_schedule(schedule_id)

    try:
        service.store.delete_schedule(schedule_id)
    except ScheduleNotFoundError:
        raise HTTPException(status_code=404, detail=f"Schedule not found: {schedule_id}")
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    return ScheduleDeleteResponse(
        id=schedule_id,
        success=True,
        cancelled=cancelled,
        message="Schedule deleted",
    )
