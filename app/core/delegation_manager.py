"""Delegation lifecycle: create, edit, cancel, list, active delegate lookup."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, as_utc, system_clock
from app.core.delegation_repository import DelegationRepository
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.core.notifier import NotificationEvent, Notifier, safe_notify
from app.logging_config import get_logger
from app.models.delegation import Delegation
from app.models.user import User
from app.schemas.delegation import DelegationCreate, DelegationFilter, DelegationUpdate
from app.schemas.user import UserRole

logger = get_logger(__name__)

DELEGATING_ROLES = {UserRole.APPROVER.value, UserRole.ADMIN.value}


class DelegationManager:
    """Delegation workflow for one acting user."""

    def __init__(
        self,
        actor: User,
        db: AsyncSession,
        notifier: Notifier | None = None,
        clock: Clock = system_clock,
    ):
        """Initialize DelegationManager.

        Args:
            actor: Authenticated user performing the operations
            db: AsyncSession for database operations
            notifier: Optional notifier for delegate emails
            clock: Time source
        """
        self.actor = actor
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.logger = get_logger(__name__)

    async def _load_delegate(self, delegate_id: UUID) -> User:
        """Delegates must be active users who can approve requests themselves."""
        delegate = await self.db.get(User, delegate_id)
        if delegate is None:
            raise NotFoundError("User", delegate_id)
        if not delegate.is_active:
            raise ValidationError("Delegate account is inactive", delegate_id=str(delegate.id))
        if delegate.role not in DELEGATING_ROLES:
            raise ValidationError(
                "Delegate must be an approver or admin",
                delegate_id=str(delegate.id),
                role=delegate.role,
            )
        return delegate

    async def _reload(self, delegation_id: UUID) -> Delegation:
        """Fresh copy with delegator and delegate loaded, for responses."""
        delegation = await DelegationRepository.get(self.db, delegation_id, with_users=True)
        if delegation is None:
            raise NotFoundError("Delegation", delegation_id)
        return delegation

    async def create_delegation(self, data: DelegationCreate) -> Delegation:
        """Delegate the actor's approval authority to another user.

        Raises:
            AuthorizationError: Actor is not an Approver or Admin
            NotFoundError: Delegate does not exist
            ValidationError: Bad window, self-delegation, inactive or non-approver
                delegate, or overlap
        """
        if self.actor.role not in DELEGATING_ROLES:
            raise AuthorizationError(
                "Only approvers can create delegations", user_id=str(self.actor.id)
            )

        delegate = await self._load_delegate(data.delegate_id)

        self.logger.info(
            "create_delegation_requested",
            delegator_id=str(self.actor.id),
            delegate_id=str(data.delegate_id),
            start_date=data.start_date.isoformat(),
            end_date=data.end_date.isoformat(),
        )

        delegation = await DelegationRepository.create(
            self.db,
            delegator_id=self.actor.id,
            delegate_id=data.delegate_id,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason,
        )
        await self.db.commit()

        self.logger.info(
            "delegation_created",
            delegation_id=str(delegation.id),
            delegator_id=str(self.actor.id),
            delegate_id=str(delegate.id),
        )

        await safe_notify(
            self.notifier,
            NotificationEvent.DELEGATION_CREATED,
            {
                "to": delegate.email,
                "delegation_id": str(delegation.id),
                "delegator_name": self.actor.name,
                "start_date": as_utc(delegation.start_date).date().isoformat(),
                "end_date": as_utc(delegation.end_date).date().isoformat(),
                "reason": delegation.reason,
            },
        )
        return await self._reload(delegation.id)

    async def cancel_delegation(self, delegation_id: UUID) -> Delegation:
        """Cancel an active delegation (delegator or admin only)."""
        delegation = await DelegationRepository.cancel(
            self.db, delegation_id, self.actor.id, self.actor.role
        )
        await self.db.commit()

        self.logger.info(
            "delegation_cancelled",
            delegation_id=str(delegation.id),
            cancelled_by=str(self.actor.id),
        )

        await safe_notify(
            self.notifier,
            NotificationEvent.DELEGATION_CANCELLED,
            {
                "to": delegation.delegate.email,
                "delegation_id": str(delegation.id),
                "delegator_name": delegation.delegator.name,
            },
        )
        return await self._reload(delegation.id)

    async def update_delegation(self, delegation_id: UUID, data: DelegationUpdate) -> Delegation:
        """Edit an active delegation's delegate, window or reason."""
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "delegate_id" in changes:
            await self._load_delegate(changes["delegate_id"])

        delegation = await DelegationRepository.update(
            self.db, delegation_id, self.actor.id, self.actor.role, changes
        )
        await self.db.commit()

        self.logger.info(
            "delegation_updated",
            delegation_id=str(delegation.id),
            updated_by=str(self.actor.id),
            fields=sorted(changes),
        )
        return await self._reload(delegation.id)

    async def get_delegation(self, delegation_id: UUID) -> Delegation:
        """Get a delegation visible to the actor."""
        delegation = await DelegationRepository.get(self.db, delegation_id, with_users=True)
        if delegation is None:
            raise NotFoundError("Delegation", delegation_id)

        if self.actor.role != UserRole.ADMIN and self.actor.id not in (
            delegation.delegator_id,
            delegation.delegate_id,
        ):
            raise AuthorizationError(
                "Not authorized to view this delegation", delegation_id=str(delegation_id)
            )
        return delegation

    async def list_delegations(self, filters: DelegationFilter | None = None) -> list[Delegation]:
        """List delegations visible to the actor."""
        return await DelegationRepository.list_for_user(
            self.db,
            self.actor.id,
            self.actor.role,
            filters,
            at=self.clock.now(),
        )

    async def get_active_delegate_for(
        self,
        user_id: UUID,
        at: datetime | None = None,
    ) -> Delegation | None:
        """Delegation currently carrying user_id's approval authority, if any."""
        return await DelegationRepository.get_active_delegate(
            self.db, user_id, at or self.clock.now()
        )
