"""Approval request endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from app.config import settings
from app.core.request_manager import RequestManager
from app.dependencies import get_request_manager
from app.logging_config import get_logger
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

logger = get_logger(__name__)
router = APIRouter(prefix="/api/requests", tags=["requests"])


def _list_response(requests) -> RequestListResponse:
    return RequestListResponse(
        requests=[RequestResponse.model_validate(r) for r in requests],
        total=len(requests),
    )


@router.get("/", response_model=RequestListResponse)
async def list_requests(
    status_filter: Optional[RequestStatus] = Query(default=None, alias="status"),
    priority: Optional[RequestPriority] = None,
    request_type: Optional[RequestType] = None,
    search: Optional[str] = None,
    manager: RequestManager = Depends(get_request_manager),
) -> RequestListResponse:
    """List requests visible to the current user.

    Requesters see their own requests, approvers see requests assigned to
    them or to anyone who has delegated to them, admins see all.
    """
    filters = RequestFilter(
        status=status_filter,
        priority=priority,
        request_type=request_type,
        search=search,
    )
    requests = await manager.list_requests(filters)
    return _list_response(requests)


@router.get("/pending", response_model=RequestListResponse)
async def list_pending_requests(
    manager: RequestManager = Depends(get_request_manager),
) -> RequestListResponse:
    """Pending requests awaiting the current user, most urgent first."""
    requests = await manager.list_requests(pending_only=True)
    return _list_response(requests)


@router.get("/my-requests", response_model=RequestListResponse)
async def list_my_requests(
    manager: RequestManager = Depends(get_request_manager),
) -> RequestListResponse:
    """Requests submitted by the current user."""
    requests = await manager.list_requests(RequestFilter(mine=True))
    return _list_response(requests)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=RequestResponse)
async def create_request(
    data: RequestCreate,
    manager: RequestManager = Depends(get_request_manager),
) -> RequestResponse:
    """Submit a new approval request."""
    request = await manager.create_request(data)
    request = await manager.load_request(request.id)
    return RequestResponse.model_validate(request)


@router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: UUID,
    manager: RequestManager = Depends(get_request_manager),
) -> RequestResponse:
    """Get request details with comments."""
    request = await manager.get_request(request_id)
    return RequestResponse.model_validate(request)


@router.put("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: UUID,
    data: RequestUpdate,
    manager: RequestManager = Depends(get_request_manager),
) -> RequestResponse:
    """Edit a pending request."""
    await manager.update_request(request_id, data)
    request = await manager.load_request(request_id)
    return RequestResponse.model_validate(request)


@router.delete("/{request_id}", response_model=RequestResponse)
async def cancel_request(
    request_id: UUID,
    manager: RequestManager = Depends(get_request_manager),
) -> RequestResponse:
    """Cancel a pending request."""
    await manager.cancel_request(request_id)
    request = await manager.load_request(request_id)
    return RequestResponse.model_validate(request)


@router.put("/{request_id}/approve", response_model=RequestResponse)
async def approve_request(
    request_id: UUID,
    manager: RequestManager = Depends(get_request_manager),
) -> RequestResponse:
    """Approve a pending request as approver, admin or active delegate."""
    await manager.approve_request(request_id)
    request = await manager.load_request(request_id)
    return RequestResponse.model_validate(request)


@router.put("/{request_id}/reject", response_model=RequestResponse)
async def reject_request(
    request_id: UUID,
    body: Optional[RequestRejectBody] = Body(default=None),
    manager: RequestManager = Depends(get_request_manager),
) -> RequestResponse:
    """Reject a pending request.

    A missing or blank reason is replaced with the configured default here;
    the core itself always requires one.
    """
    reason = body.reason if body and body.reason and body.reason.strip() else None
    if reason is None:
        reason = settings.default_rejection_reason
        logger.info("rejection_reason_defaulted", request_id=str(request_id))

    await manager.reject_request(request_id, reason)
    request = await manager.load_request(request_id)
    return RequestResponse.model_validate(request)
