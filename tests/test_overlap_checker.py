"""Tests for delegation window overlap checks."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.delegation_repository import DelegationRepository
from app.core.overlap_checker import find_overlapping, has_overlap, intervals_overlap
from app.models.user import User
from tests.conftest import utc


@pytest.mark.parametrize(
    "b_start, b_end, expected",
    [
        (utc(2026, 2, 5), utc(2026, 2, 15), True),   # partial overlap
        (utc(2026, 2, 3), utc(2026, 2, 4), True),    # contained
        (utc(2026, 1, 1), utc(2026, 3, 1), True),    # containing
        (utc(2026, 2, 10), utc(2026, 2, 20), True),  # shares the end instant
        (utc(2026, 2, 11), utc(2026, 2, 20), False),
        (utc(2026, 1, 20), utc(2026, 1, 31), False),
    ],
)
def test_intervals_overlap(b_start, b_end, expected):
    """Windows overlap when they share any instant, boundaries included."""
    assert intervals_overlap(utc(2026, 2, 1), utc(2026, 2, 10), b_start, b_end) is expected
    assert intervals_overlap(b_start, b_end, utc(2026, 2, 1), utc(2026, 2, 10)) is expected


@pytest.mark.asyncio
async def test_has_overlap_against_stored_delegation(
    db_session: AsyncSession, approver: User, delegate: User
):
    """Feb 1-10 exists: Feb 5-15 conflicts, Feb 11-20 does not."""
    await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    await db_session.commit()

    assert await has_overlap(db_session, utc(2026, 2, 5), utc(2026, 2, 15), approver.id)
    assert await has_overlap(db_session, utc(2026, 2, 10), utc(2026, 2, 12), approver.id)
    assert not await has_overlap(db_session, utc(2026, 2, 11), utc(2026, 2, 20), approver.id)


@pytest.mark.asyncio
async def test_overlap_is_per_delegator(
    db_session: AsyncSession, approver: User, delegate: User, outsider: User
):
    await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    await db_session.commit()

    assert not await has_overlap(db_session, utc(2026, 2, 1), utc(2026, 2, 10), outsider.id)


@pytest.mark.asyncio
async def test_inactive_delegations_do_not_block(
    db_session: AsyncSession, approver: User, delegate: User
):
    delegation = await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    await db_session.commit()
    await DelegationRepository.cancel(db_session, delegation.id, approver.id, approver.role)
    await db_session.commit()

    assert not await has_overlap(db_session, utc(2026, 2, 5), utc(2026, 2, 15), approver.id)


@pytest.mark.asyncio
async def test_exclude_id_skips_the_delegation_being_edited(
    db_session: AsyncSession, approver: User, delegate: User
):
    delegation = await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    await db_session.commit()

    found = await find_overlapping(db_session, utc(2026, 2, 2), utc(2026, 2, 12), approver.id)
    assert found is not None
    assert found.id == delegation.id

    assert not await has_overlap(
        db_session,
        utc(2026, 2, 2),
        utc(2026, 2, 12),
        approver.id,
        exclude_id=delegation.id,
    )
