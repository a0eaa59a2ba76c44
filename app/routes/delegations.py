"""Delegation endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.delegation_manager import DelegationManager
from app.dependencies import get_delegation_manager
from app.schemas.delegation import (
    ActiveDelegateResponse,
    DelegationCreate,
    DelegationFilter,
    DelegationListResponse,
    DelegationResponse,
    DelegationRole,
    DelegationUpdate,
)

router = APIRouter(prefix="/api/delegations", tags=["delegations"])


def _list_response(delegations) -> DelegationListResponse:
    return DelegationListResponse(
        delegations=[DelegationResponse.model_validate(d) for d in delegations],
        total=len(delegations),
    )


@router.get("/", response_model=DelegationListResponse)
async def list_delegations(
    is_active: Optional[bool] = None,
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationListResponse:
    """Delegations where the current user is delegator or delegate (all for admins)."""
    delegations = await manager.list_delegations(DelegationFilter(is_active=is_active))
    return _list_response(delegations)


@router.get("/active", response_model=DelegationListResponse)
async def list_current_delegations(
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationListResponse:
    """Delegations in force right now."""
    delegations = await manager.list_delegations(DelegationFilter(current_only=True))
    return _list_response(delegations)


@router.get("/my-delegations", response_model=DelegationListResponse)
async def list_my_delegations(
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationListResponse:
    """Delegations the current user granted."""
    delegations = await manager.list_delegations(
        DelegationFilter(role=DelegationRole.DELEGATOR)
    )
    return _list_response(delegations)


@router.get("/to-me", response_model=DelegationListResponse)
async def list_delegations_to_me(
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationListResponse:
    """Delegations granted to the current user."""
    delegations = await manager.list_delegations(
        DelegationFilter(role=DelegationRole.DELEGATE)
    )
    return _list_response(delegations)


@router.get("/active-delegate/{user_id}", response_model=ActiveDelegateResponse)
async def get_active_delegate(
    user_id: UUID,
    manager: DelegationManager = Depends(get_delegation_manager),
) -> ActiveDelegateResponse:
    """Who currently holds user_id's approval authority, if anyone."""
    delegation = await manager.get_active_delegate_for(user_id)
    return ActiveDelegateResponse(
        user_id=user_id,
        delegation=DelegationResponse.model_validate(delegation) if delegation else None,
    )


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=DelegationResponse)
async def create_delegation(
    data: DelegationCreate,
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationResponse:
    """Delegate the current user's approval authority for a time window."""
    delegation = await manager.create_delegation(data)
    return DelegationResponse.model_validate(delegation)


@router.get("/{delegation_id}", response_model=DelegationResponse)
async def get_delegation(
    delegation_id: UUID,
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationResponse:
    """Get a delegation the current user is party to."""
    delegation = await manager.get_delegation(delegation_id)
    return DelegationResponse.model_validate(delegation)


@router.put("/{delegation_id}", response_model=DelegationResponse)
async def update_delegation(
    delegation_id: UUID,
    data: DelegationUpdate,
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationResponse:
    """Edit an active delegation."""
    delegation = await manager.update_delegation(delegation_id, data)
    return DelegationResponse.model_validate(delegation)


@router.delete("/{delegation_id}", response_model=DelegationResponse)
async def cancel_delegation(
    delegation_id: UUID,
    manager: DelegationManager = Depends(get_delegation_manager),
) -> DelegationResponse:
    """Cancel an active delegation. The record is kept, marked inactive."""
    delegation = await manager.cancel_delegation(delegation_id)
    return DelegationResponse.model_validate(delegation)
