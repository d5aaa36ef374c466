"""
Schedule API schemas.

A schedule targets either a group or an explicit set of numbers, never
both. Omitting both creates a schedule with no recipients.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ScheduleCreateRequest(BaseModel):
    """Request to schedule a message."""

    message: str = Field(
        ...,
        min_length=1,
        description="Message body"
    )
    send_at: datetime = Field(
        ...,
        description="When to send. Naive values are read in SCHEDULER_TIMEZONE"
    )
    group: Optional[str] = Field(
        default=None,
        description="Send to every number in this group at send time"
    )
    number_ids: Optional[List[int]] = Field(
        default=None,
        description="Send to these stored numbers (resolved now)"
    )

    @field_validator("group")
    @classmethod
    def blank_group_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def group_xor_numbers(self) -> "ScheduleCreateRequest":
        if self.group is not None and self.number_ids is not None:
            raise ValueError("Provide either 'group' or 'number_ids', not both")
        return self


class ScheduleResponse(BaseModel):
    """Response representing a schedule."""

    id: int = Field(..., description="Schedule id")
    message: str = Field(..., description="Message body")
    send_at: datetime = Field(..., description="Send time (UTC)")
    group_name: Optional[str] = Field(default=None, description="Target group")
    numbers: Optional[List[str]] = Field(
        default=None,
        description="Explicit target numbers (null for group or unreadable lists)"
    )
    sent: bool = Field(default=False, description="Delivery has been attempted")
    pending: bool = Field(default=False, description="A timer is armed for this schedule")


class ScheduleListResponse(BaseModel):
    """Response for schedule list endpoint."""

    schedules: List[ScheduleResponse] = Field(default_factory=list)
    total: int = Field(..., description="Total number of schedules")
    pending_count: int = Field(default=0, description="Schedules with an armed timer")


class ScheduleDeleteResponse(BaseModel):
    """Response from schedule deletion."""

    id: int
    success: bool
    cancelled: bool = Field(
        default=False,
        description="Whether a pending timer was cancelled"
    )
    message: Optional[str] = None
