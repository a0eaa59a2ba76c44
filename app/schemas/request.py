"""Approval request schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.comment import CommentResponse
from app.schemas.user import UserSummary


class RequestStatus(str, Enum):
    """Request status enum."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


class RequestPriority(str, Enum):
    """Request priority enum."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class RequestType(str, Enum):
    """Request type enum."""

    LEAVE = "Leave"
    PURCHASE = "Purchase"
    BUDGET = "Budget"
    PROJECT = "Project"
    POLICY = "Policy"
    OTHER = "Other"


class RequestCreate(BaseModel):
    """Create approval request schema."""

    title: str = Field(..., min_length=1, max_length=200, description="Request title")
    description: str = Field(..., min_length=1, description="Request description")
    request_type: RequestType = Field(default=RequestType.OTHER, description="Request type")
    approver_id: UUID = Field(..., description="Nominal approver UUID")
    priority: RequestPriority = Field(default=RequestPriority.MEDIUM, description="Priority")
    amount: Optional[Decimal] = Field(default=None, ge=0, description="Optional amount")

    model_config = {"json_schema_extra": {
        "example": {
            "title": "New laptop",
            "description": "Replacement for a five-year-old machine",
            "request_type": "Purchase",
            "approver_id": "550e8400-e29b-41d4-a716-446655440000",
            "priority": "High",
            "amount": 1800,
        }
    }}


class RequestUpdate(BaseModel):
    """Update approval request schema. Only fields that are set are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    request_type: Optional[RequestType] = Field(default=None)
    approver_id: Optional[UUID] = Field(default=None)
    priority: Optional[RequestPriority] = Field(default=None)
    amount: Optional[Decimal] = Field(default=None, ge=0)


class RequestRejectBody(BaseModel):
    """Reject request body."""

    reason: Optional[str] = Field(default=None, max_length=2000, description="Rejection reason")


class RequestFilter(BaseModel):
    """Listing filters for approval requests."""

    status: Optional[RequestStatus] = None
    priority: Optional[RequestPriority] = None
    request_type: Optional[RequestType] = None
    search: Optional[str] = None
    mine: bool = False


class RequestResponse(BaseModel):
    """Approval request response schema."""

    id: UUID = Field(..., description="Request UUID")
    title: str = Field(..., description="Request title")
    description: str = Field(..., description="Request description")
    request_type: RequestType = Field(..., description="Request type")
    requester_id: UUID = Field(..., description="Requester UUID")
    approver_id: UUID = Field(..., description="Nominal approver UUID")
    actual_approver_id: Optional[UUID] = Field(default=None, description="User who actually decided")
    status: RequestStatus = Field(..., description="Request status")
    priority: RequestPriority = Field(..., description="Priority")
    amount: Optional[Decimal] = Field(default=None, description="Amount")
    rejection_reason: Optional[str] = Field(default=None, description="Rejection reason")
    submitted_at: datetime = Field(..., description="Submission timestamp")
    reviewed_at: Optional[datetime] = Field(default=None, description="Review timestamp")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    requester: Optional[UserSummary] = Field(default=None, description="Requester details")
    approver: Optional[UserSummary] = Field(default=None, description="Approver details")
    actual_approver: Optional[UserSummary] = Field(default=None, description="Actual approver details")
    comments: Optional[list[CommentResponse]] = Field(default=None, description="Comments, when requested")

    model_config = {"from_attributes": True}


class RequestListResponse(BaseModel):
    """Approval request list response schema."""

    requests: list[RequestResponse] = Field(..., description="List of approval requests")
    total: int = Field(..., description="Number of requests returned")
