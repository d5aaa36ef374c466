"""
Numbers router.

Endpoints under /numbers/* for managing recipient numbers and groups.
Group membership is read at send time, so edits here affect pending
group schedules.
"""

from fastapi import APIRouter, HTTPException, status

from message_scheduler.scheduler import (
    Recipient,
    RecipientNotFoundError,
    StoreUnavailableError,
)
from ..schemas.numbers import (
    NumberCreateRequest,
    NumberResponse,
    NumberListResponse,
    GroupListResponse,
    NumberDeleteResponse,
)
from .._scheduler_state import get_scheduler_service


router = APIRouter()


def _to_response(recipient: Recipient) -> NumberResponse:
    return NumberResponse(
        id=recipient.recipient_id,
        number=recipient.number,
        group_name=recipient.group_name,
    )


@router.get("", response_model=NumberListResponse)
async def list_numbers():
    """List all stored numbers."""
    store = get_scheduler_service().store

    try:
        recipients = store.list_recipients()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    return NumberListResponse(
        numbers=[_to_response(r) for r in recipients],
        total=len(recipients),
    )


@router.post("", response_model=NumberResponse, status_code=status.HTTP_201_CREATED)
async def add_number(request: NumberCreateRequest):
    """
    Register a number.

    Numbers are unique: re-adding an existing number returns the stored
    record unchanged.
    """
    store = get_scheduler_service().store

    try:
        recipient_id = store.add_recipient(request.number, request.group)
        recipient = store.get_recipient(recipient_id)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    return _to_response(recipient)


@router.get("/groups", response_model=GroupListResponse)
async def list_groups():
    """List distinct group labels."""
    store = get_scheduler_service().store

    try:
        groups = store.list_group_names()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    return GroupListResponse(groups=groups)


@router.delete("/{number_id}", response_model=NumberDeleteResponse)
async def delete_number(number_id: int):
    """Delete a stored number."""
    store = get_scheduler_service().store

    try:
        store.delete_recipient(number_id)
    except RecipientNotFoundError:
        raise HTTPException(status_code=404, detail=f"Number not found: {number_id}")
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    return NumberDeleteResponse(id=number_id, success=True, message="Number deleted")
