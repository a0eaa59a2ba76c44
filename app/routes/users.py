"""User lookup endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, require_admin
from app.models.user import User
from app.schemas.user import UserListResponse, UserResponse, UserRole, UserSummary

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    """Current user profile."""
    return UserResponse.model_validate(user)


@router.get("/role/{role}", response_model=list[UserSummary])
async def list_users_by_role(
    role: UserRole,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[UserSummary]:
    """Active users with a role, e.g. to pick an approver or delegate."""
    result = await db.execute(
        select(User)
        .where(User.role == role.value, User.is_active.is_(True))
        .order_by(User.name)
    )
    return [UserSummary.model_validate(u) for u in result.scalars().all()]


@router.get("/", response_model=UserListResponse)
async def list_users(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    """All users (admin only)."""
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    users = result.scalars().all()
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )
