"""Comment schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.user import UserSummary


class CommentCreate(BaseModel):
    """Create comment schema."""

    comment: str = Field(..., min_length=1, max_length=1000, description="Comment text")


class CommentResponse(BaseModel):
    """Comment response schema."""

    id: UUID = Field(..., description="Comment UUID")
    request_id: UUID = Field(..., description="Request UUID")
    user_id: UUID = Field(..., description="Author UUID")
    comment: str = Field(..., description="Comment text")
    created_at: datetime = Field(..., description="Creation timestamp")
    user: Optional[UserSummary] = Field(default=None, description="Author details")

    model_config = {"from_attributes": True}


class CommentListResponse(BaseModel):
    """Comment list response schema."""

    comments: list[CommentResponse] = Field(..., description="List of comments")
    total: int = Field(..., description="Number of comments")
