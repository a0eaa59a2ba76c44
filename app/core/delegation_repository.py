"""Repository for delegation records.

Holds every read and write against the delegations table, including the
point-in-time active delegate lookup and the bulk expiry update used by the
sweeper.

Usage:
    delegation = await DelegationRepository.create(
        session,
        delegator_id=approver.id,
        delegate_id=colleague.id,
        start_date=start,
        end_date=end,
        reason="Annual leave",
    )
    await session.commit()
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.clock import as_utc
from app.core.errors import AuthorizationError, NotFoundError, StateError, ValidationError
from app.core.overlap_checker import has_overlap
from app.logging_config import get_logger
from app.models.delegation import Delegation
from app.models.user import User
from app.schemas.delegation import DelegationFilter, DelegationRole
from app.schemas.user import UserRole

logger = get_logger(__name__)

OVERLAP_MESSAGE = "Delegator already has an active delegation for this time period"


def _with_users(query):
    return query.options(
        selectinload(Delegation.delegator),
        selectinload(Delegation.delegate),
    )


def _validate_window(
    delegator_id: UUID,
    delegate_id: UUID,
    start_date: datetime,
    end_date: datetime,
    reason: str | None,
) -> None:
    if delegate_id == delegator_id:
        raise ValidationError("Cannot delegate to yourself", delegator_id=str(delegator_id))
    if as_utc(end_date) <= as_utc(start_date):
        raise ValidationError(
            "End date must be after start date",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
    if reason is not None and not reason.strip():
        raise ValidationError("Please provide a reason for delegation")


class DelegationRepository:
    """Delegation store."""

    @staticmethod
    async def get(
        session: AsyncSession,
        delegation_id: UUID,
        with_users: bool = False,
    ) -> Delegation | None:
        """Get a delegation by ID, reloading any stale identity-map copy.

        Args:
            session: AsyncSession to query from
            delegation_id: ID of delegation to retrieve
            with_users: Also load delegator and delegate

        Returns:
            Delegation or None if not found
        """
        query = select(Delegation).where(Delegation.id == delegation_id)
        if with_users:
            query = _with_users(query)
        result = await session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    @staticmethod
    async def _lock_delegator(session: AsyncSession, delegator_id: UUID) -> None:
        """Serialize concurrent writes for one delegator.

        Locks the delegator's user row until the transaction ends, so the
        overlap check and the insert that follows behave as one unit.
        SQLite ignores FOR UPDATE and serializes writers on its own.
        """
        result = await session.execute(
            select(User.id).where(User.id == delegator_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("User", delegator_id)

    @staticmethod
    async def create(
        session: AsyncSession,
        delegator_id: UUID,
        delegate_id: UUID,
        start_date: datetime,
        end_date: datetime,
        reason: str,
    ) -> Delegation:
        """Validate and persist a new active delegation.

        Args:
            session: AsyncSession to use for the write
            delegator_id: User granting authority
            delegate_id: User receiving authority
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)
            reason: Free text reason, required

        Returns:
            Delegation: Flushed delegation with is_active=True, auto_expired=False

        Raises:
            ValidationError: Bad window, self-delegation, blank reason or overlap
            NotFoundError: Delegator does not exist

        Note:
            This method does NOT commit. The caller commits, which also
            releases the delegator lock taken before the overlap check.
        """
        if reason is None:
            raise ValidationError("Please provide a reason for delegation")
        _validate_window(delegator_id, delegate_id, start_date, end_date, reason)
        start_date, end_date = as_utc(start_date), as_utc(end_date)

        await DelegationRepository._lock_delegator(session, delegator_id)

        if await has_overlap(session, start_date, end_date, delegator_id):
            logger.info(
                "delegation_overlap_rejected",
                delegator_id=str(delegator_id),
                start_date=start_date.isoformat(),
                end_date=end_date.isoformat(),
            )
            raise ValidationError(OVERLAP_MESSAGE, delegator_id=str(delegator_id))

        delegation = Delegation(
            delegator_id=delegator_id,
            delegate_id=delegate_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason.strip(),
            is_active=True,
            auto_expired=False,
        )
        session.add(delegation)
        try:
            await session.flush()
        except IntegrityError as e:
            # Storage-level exclusion constraint caught a concurrent overlap
            await session.rollback()
            logger.warning(
                "delegation_insert_conflict",
                delegator_id=str(delegator_id),
                error=str(e.orig),
            )
            raise ValidationError(OVERLAP_MESSAGE, delegator_id=str(delegator_id)) from e

        return delegation

    @staticmethod
    def _check_manageable(delegation: Delegation, actor_id: UUID, actor_role: str) -> None:
        if delegation.delegator_id != actor_id and actor_role != UserRole.ADMIN:
            raise AuthorizationError(
                "Not authorized to modify this delegation",
                delegation_id=str(delegation.id),
            )
        if not delegation.is_active:
            raise StateError(
                "Cannot modify inactive delegation",
                delegation_id=str(delegation.id),
                auto_expired=delegation.auto_expired,
            )

    @staticmethod
    async def cancel(
        session: AsyncSession,
        delegation_id: UUID,
        actor_id: UUID,
        actor_role: str,
    ) -> Delegation:
        """Deactivate a delegation on behalf of its delegator or an admin.

        auto_expired is left untouched; only the sweeper sets it.

        Raises:
            NotFoundError: Delegation does not exist
            AuthorizationError: Actor is neither delegator nor admin
            StateError: Delegation is already inactive
        """
        result = await session.execute(
            _with_users(select(Delegation).where(Delegation.id == delegation_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        delegation = result.scalar_one_or_none()
        if delegation is None:
            raise NotFoundError("Delegation", delegation_id)

        DelegationRepository._check_manageable(delegation, actor_id, actor_role)

        delegation.is_active = False
        await session.flush()
        return delegation

    @staticmethod
    async def update(
        session: AsyncSession,
        delegation_id: UUID,
        actor_id: UUID,
        actor_role: str,
        changes: dict,
    ) -> Delegation:
        """Edit an active delegation, re-checking its window against the others.

        Args:
            session: AsyncSession to use
            delegation_id: Delegation to edit
            actor_id: Acting user
            actor_role: Acting user's role
            changes: Subset of delegate_id, start_date, end_date, reason

        Raises:
            NotFoundError, AuthorizationError, StateError, ValidationError
        """
        result = await session.execute(
            select(Delegation)
            .where(Delegation.id == delegation_id)
            .execution_options(populate_existing=True)
        )
        delegation = result.scalar_one_or_none()
        if delegation is None:
            raise NotFoundError("Delegation", delegation_id)

        DelegationRepository._check_manageable(delegation, actor_id, actor_role)

        delegate_id = changes.get("delegate_id") or delegation.delegate_id
        start_date = as_utc(changes.get("start_date") or delegation.start_date)
        end_date = as_utc(changes.get("end_date") or delegation.end_date)
        reason = changes.get("reason")
        _validate_window(delegation.delegator_id, delegate_id, start_date, end_date, reason)

        await DelegationRepository._lock_delegator(session, delegation.delegator_id)
        if await has_overlap(
            session, start_date, end_date, delegation.delegator_id, exclude_id=delegation.id
        ):
            raise ValidationError(OVERLAP_MESSAGE, delegator_id=str(delegation.delegator_id))

        delegation.delegate_id = delegate_id
        delegation.start_date = start_date
        delegation.end_date = end_date
        if reason is not None:
            delegation.reason = reason.strip()
        await session.flush()
        return delegation

    @staticmethod
    async def get_active_delegate(
        session: AsyncSession,
        delegator_id: UUID,
        at: datetime,
    ) -> Delegation | None:
        """Get the delegation granting delegator_id's authority at the given instant.

        At most one row can match because overlapping active delegations are
        rejected at creation.

        Args:
            session: AsyncSession to query from
            delegator_id: Nominal approver
            at: Point in time to evaluate

        Returns:
            Active Delegation (with users loaded) or None
        """
        at = as_utc(at)
        result = await session.execute(
            _with_users(
                select(Delegation).where(
                    Delegation.delegator_id == delegator_id,
                    Delegation.is_active.is_(True),
                    Delegation.start_date <= at,
                    Delegation.end_date >= at,
                )
            ).limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_delegators_for(
        session: AsyncSession,
        delegate_id: UUID,
        at: datetime,
    ) -> list[UUID]:
        """IDs of users whose active delegation at the given instant names delegate_id."""
        at = as_utc(at)
        result = await session.execute(
            select(Delegation.delegator_id).where(
                Delegation.delegate_id == delegate_id,
                Delegation.is_active.is_(True),
                Delegation.start_date <= at,
                Delegation.end_date >= at,
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def sweep_expired(session: AsyncSession, at: datetime) -> int:
        """Deactivate every active delegation whose window ended before the given instant.

        Runs as a single UPDATE so an interrupted sweep never leaves a partial
        result. The auto_expired guard keeps already-swept rows from matching
        again, making repeated calls no-ops.

        Args:
            session: AsyncSession to use
            at: Sweep reference time

        Returns:
            Number of delegations expired by this call

        Note:
            This method does NOT commit. Objects already loaded in the session
            are not refreshed; re-read them through get().
        """
        at = as_utc(at)
        result = await session.execute(
            update(Delegation)
            .where(
                Delegation.is_active.is_(True),
                Delegation.end_date < at,
                Delegation.auto_expired.is_(False),
            )
            .values(is_active=False, auto_expired=True, updated_at=at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        user_id: UUID,
        user_role: str,
        filters: DelegationFilter | None = None,
        at: datetime | None = None,
    ) -> list[Delegation]:
        """List delegations visible to a user, newest first.

        Admins see every delegation; everyone else sees the ones where they
        are delegator or delegate.

        Args:
            session: AsyncSession to query from
            user_id: Acting user
            user_role: Acting user's role
            filters: Optional is_active, role and current_only filters
            at: Reference time for current_only
        """
        filters = filters or DelegationFilter()
        query = _with_users(select(Delegation))

        if filters.role == DelegationRole.DELEGATOR:
            query = query.where(Delegation.delegator_id == user_id)
        elif filters.role == DelegationRole.DELEGATE:
            query = query.where(Delegation.delegate_id == user_id)
        elif user_role != UserRole.ADMIN:
            query = query.where(
                or_(Delegation.delegator_id == user_id, Delegation.delegate_id == user_id)
            )

        if filters.is_active is not None:
            query = query.where(Delegation.is_active.is_(filters.is_active))

        if filters.current_only:
            if at is None:
                raise ValueError("current_only listing needs a reference time")
            at = as_utc(at)
            query = query.where(
                and_(
                    Delegation.is_active.is_(True),
                    Delegation.start_date <= at,
                    Delegation.end_date >= at,
                )
            )

        result = await session.execute(query.order_by(Delegation.created_at.desc()))
        return list(result.scalars().all())
