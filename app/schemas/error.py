"""Error schemas."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response schema."""

    detail: str = Field(..., description="Error detail message")
    error_code: str = Field(..., description="Error code")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Error timestamp"
    )
    metadata: dict[str, Any] | None = Field(default=None, description="Additional error metadata")

    model_config = {"json_schema_extra": {
        "example": {
            "detail": "Request is already approved",
            "error_code": "INVALID_STATE",
            "timestamp": "2026-02-11T07:00:00Z",
            "metadata": {"request_id": "550e8400-e29b-41d4-a716-446655440000"}
        }
    }}
