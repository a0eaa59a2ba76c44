"""User schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """User role enum."""

    REQUESTER = "Requester"
    APPROVER = "Approver"
    ADMIN = "Admin"


class UserSummary(BaseModel):
    """Related-user details embedded in request, delegation and comment responses."""

    id: UUID = Field(..., description="User UUID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="User role")
    department: Optional[str] = Field(default=None, description="Department")
    position: Optional[str] = Field(default=None, description="Position")

    model_config = {"from_attributes": True}


class UserResponse(UserSummary):
    """User response schema."""

    is_active: bool = Field(..., description="Whether the account is active")
    created_at: datetime = Field(..., description="Creation timestamp")


class UserListResponse(BaseModel):
    """User list response schema."""

    users: list[UserResponse] = Field(..., description="List of users")
    total: int = Field(..., description="Total number of users")
