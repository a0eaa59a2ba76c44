"""Delegation schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.user import UserSummary


class DelegationRole(str, Enum):
    """Which side of a delegation the acting user is on."""

    DELEGATOR = "delegator"
    DELEGATE = "delegate"


class DelegationCreate(BaseModel):
    """Create delegation schema. The delegator is always the acting user."""

    delegate_id: UUID = Field(..., description="User receiving approval authority")
    start_date: datetime = Field(..., description="Window start (inclusive)")
    end_date: datetime = Field(..., description="Window end (inclusive)")
    reason: str = Field(..., min_length=1, max_length=1000, description="Reason for delegating")

    model_config = {"json_schema_extra": {
        "example": {
            "delegate_id": "550e8400-e29b-41d4-a716-446655440000",
            "start_date": "2026-02-01T00:00:00Z",
            "end_date": "2026-02-10T23:59:59Z",
            "reason": "Annual leave",
        }
    }}


class DelegationUpdate(BaseModel):
    """Update delegation schema. Only fields that are set are applied."""

    delegate_id: Optional[UUID] = Field(default=None)
    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    reason: Optional[str] = Field(default=None, min_length=1, max_length=1000)


class DelegationFilter(BaseModel):
    """Listing filters for delegations."""

    is_active: Optional[bool] = None
    role: Optional[DelegationRole] = None
    current_only: bool = False


class DelegationResponse(BaseModel):
    """Delegation response schema."""

    id: UUID = Field(..., description="Delegation UUID")
    delegator_id: UUID = Field(..., description="Delegator UUID")
    delegate_id: UUID = Field(..., description="Delegate UUID")
    start_date: datetime = Field(..., description="Window start")
    end_date: datetime = Field(..., description="Window end")
    is_active: bool = Field(..., description="Whether the delegation is still active")
    auto_expired: bool = Field(..., description="Whether the expiry sweeper deactivated it")
    reason: str = Field(..., description="Reason for delegating")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    delegator: Optional[UserSummary] = Field(default=None, description="Delegator details")
    delegate: Optional[UserSummary] = Field(default=None, description="Delegate details")

    model_config = {"from_attributes": True}


class DelegationListResponse(BaseModel):
    """Delegation list response schema."""

    delegations: list[DelegationResponse] = Field(..., description="List of delegations")
    total: int = Field(..., description="Number of delegations returned")


class ActiveDelegateResponse(BaseModel):
    """Active delegate lookup response."""

    user_id: UUID = Field(..., description="Delegator UUID that was looked up")
    delegation: Optional[DelegationResponse] = Field(
        default=None, description="Active delegation, if any"
    )
