"""
Number (recipient) API schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class NumberCreateRequest(BaseModel):
    """Request to register a WhatsApp number."""

    number: str = Field(
        ...,
        min_length=1,
        description="WhatsApp number including country code (e.g. 5521999999999)"
    )
    group: Optional[str] = Field(
        default=None,
        description="Optional group label"
    )

    @field_validator("number")
    @classmethod
    def strip_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("number must not be blank")
        return v

    @field_validator("group")
    @classmethod
    def blank_group_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class NumberResponse(BaseModel):
    """Response representing a stored number."""

    id: int = Field(..., description="Recipient id")
    number: str = Field(..., description="WhatsApp number")
    group_name: Optional[str] = Field(default=None, description="Group label")


class NumberListResponse(BaseModel):
    """Response for number list endpoint."""

    numbers: List[NumberResponse] = Field(default_factory=list)
    total: int = Field(..., description="Total number of stored numbers")


class GroupListResponse(BaseModel):
    """Distinct group labels in use."""

    groups: List[str] = Field(default_factory=list)


class NumberDeleteResponse(BaseModel):
    """Response from number deletion."""

    id: int
    success: bool
    message: Optional[str] = None
