"""Interval overlap checks for delegation windows.

Two windows overlap when they share at least one instant, boundaries
included: ``a.start <= b.end and a.end >= b.start``. Only active
delegations take part; cancelled and auto-expired rows never block a new
grant even if their stored dates still overlap.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc
from app.models.delegation import Delegation


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Closed-interval overlap test."""
    return as_utc(a_start) <= as_utc(b_end) and as_utc(a_end) >= as_utc(b_start)


async def find_overlapping(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    delegator_id: UUID,
    exclude_id: UUID | None = None,
) -> Delegation | None:
    """Return one active delegation of the delegator overlapping [start, end], if any.

    Args:
        session: AsyncSession to query from
        start: Candidate window start
        end: Candidate window end
        delegator_id: Delegator whose delegations are compared
        exclude_id: Delegation to leave out (the one being updated)
    """
    query = select(Delegation).where(
        Delegation.delegator_id == delegator_id,
        Delegation.is_active.is_(True),
        Delegation.start_date <= as_utc(end),
        Delegation.end_date >= as_utc(start),
    )
    if exclude_id is not None:
        query = query.where(Delegation.id != exclude_id)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()


async def has_overlap(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    delegator_id: UUID,
    exclude_id: UUID | None = None,
) -> bool:
    """Whether [start, end] conflicts with the delegator's active delegations."""
    overlapping = await find_overlapping(session, start, end, delegator_id, exclude_id)
    return overlapping is not None
