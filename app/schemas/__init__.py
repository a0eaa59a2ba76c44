"""Pydantic schemas."""

from app.schemas.comment import CommentCreate, CommentListResponse, CommentResponse
from app.schemas.delegation import (
    ActiveDelegateResponse,
    DelegationCreate,
    DelegationFilter,
    DelegationListResponse,
    DelegationResponse,
    DelegationRole,
    DelegationUpdate,
)
from app.schemas.error import ErrorResponse
from app.schemas.request import (
    RequestCreate,
    RequestFilter,
    RequestListResponse,
    RequestPriority,
    RequestRejectBody,
    RequestResponse,
    RequestStatus,
    RequestType,
    RequestUpdate,
)
from app.schemas.user import UserListResponse, UserResponse, UserRole, UserSummary

__all__ = [
    "ActiveDelegateResponse",
    "CommentCreate",
    "CommentListResponse",
    "CommentResponse",
    "DelegationCreate",
    "DelegationFilter",
    "DelegationListResponse",
    "DelegationResponse",
    "DelegationRole",
    "DelegationUpdate",
    "ErrorResponse",
    "RequestCreate",
    "RequestFilter",
    "RequestListResponse",
    "RequestPriority",
    "RequestRejectBody",
    "RequestResponse",
    "RequestStatus",
    "RequestType",
    "RequestUpdate",
    "UserListResponse",
    "UserResponse",
    "UserRole",
    "UserSummary",
]
