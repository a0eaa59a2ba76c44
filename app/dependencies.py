"""FastAPI dependencies for the acting user, clock, notifier and managers."""

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.comment_manager import CommentManager
from app.core.delegation_manager import DelegationManager
from app.core.notifier import Notifier, build_notifier
from app.core.request_manager import RequestManager
from app.database import get_db
from app.logging_config import get_logger
from app.middleware.user_isolation import get_current_user_id
from app.models.user import User
from app.schemas.user import UserRole

logger = get_logger(__name__)


def get_clock() -> Clock:
    """Time source for request handling."""
    return system_clock


@lru_cache
def get_notifier() -> Notifier:
    """Process-wide notifier (email when enabled, log-only otherwise)."""
    return build_notifier()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the authenticated user.

    Raises:
        HTTPException 401: If the token's user is unknown or deactivated
    """
    try:
        user_id = get_current_user_id(request)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        logger.warning("unknown_or_inactive_user", user_id=str(user_id))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Restrict an endpoint to admins."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User role {user.role} is not authorized to access this route",
        )
    return user


def get_request_manager(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> RequestManager:
    return RequestManager(actor=user, db=db, notifier=notifier, clock=clock)


def get_delegation_manager(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> DelegationManager:
    return DelegationManager(actor=user, db=db, notifier=notifier, clock=clock)


def get_comment_manager(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> CommentManager:
    return CommentManager(actor=user, db=db, clock=clock)
