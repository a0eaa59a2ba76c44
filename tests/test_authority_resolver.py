"""Tests for delegation-aware approval authority."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authority_resolver import ActingAs, AuthorityResolver
from app.core.delegation_repository import DelegationRepository
from app.models.approval_request import ApprovalRequest
from app.models.user import User
from tests.conftest import utc


@pytest_asyncio.fixture
async def request_for_approver(
    db_session: AsyncSession, requester: User, approver: User
) -> ApprovalRequest:
    request = ApprovalRequest(
        title="Conference travel",
        description="Flights and hotel for the spring conference",
        request_type="Purchase",
        requester_id=requester.id,
        approver_id=approver.id,
        status="Pending",
        priority="High",
    )
    db_session.add(request)
    await db_session.commit()
    return request


@pytest_asyncio.fixture
async def delegation(db_session: AsyncSession, approver: User, delegate: User):
    """Approver delegates to `delegate` for Feb 1-10."""
    delegation = await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    await db_session.commit()
    return delegation


@pytest.mark.asyncio
async def test_admin_always_allowed(
    db_session: AsyncSession, request_for_approver: ApprovalRequest, admin: User
):
    resolver = AuthorityResolver(db_session)
    decision = await resolver.resolve(request_for_approver, admin.id, admin.role, utc(2026, 2, 5))

    assert decision.allowed is True
    assert decision.acting_as == ActingAs.ADMIN
    assert decision.delegation_id is None


@pytest.mark.asyncio
async def test_nominal_approver_allowed(
    db_session: AsyncSession, request_for_approver: ApprovalRequest, approver: User
):
    resolver = AuthorityResolver(db_session)
    decision = await resolver.resolve(
        request_for_approver, approver.id, approver.role, utc(2026, 2, 5)
    )

    assert decision.allowed is True
    assert decision.acting_as == ActingAs.APPROVER


@pytest.mark.asyncio
async def test_approver_keeps_authority_while_delegating(
    db_session: AsyncSession,
    request_for_approver: ApprovalRequest,
    approver: User,
    delegation,
):
    """Delegating does not take authority away from the delegator."""
    resolver = AuthorityResolver(db_session)
    decision = await resolver.resolve(
        request_for_approver, approver.id, approver.role, utc(2026, 2, 5)
    )

    assert decision.allowed is True
    assert decision.acting_as == ActingAs.APPROVER


@pytest.mark.asyncio
async def test_delegate_allowed_inside_window(
    db_session: AsyncSession,
    request_for_approver: ApprovalRequest,
    delegate: User,
    delegation,
):
    resolver = AuthorityResolver(db_session)
    decision = await resolver.resolve(
        request_for_approver, delegate.id, delegate.role, utc(2026, 2, 5)
    )

    assert decision.allowed is True
    assert decision.acting_as == ActingAs.DELEGATE
    assert decision.delegation_id == delegation.id


@pytest.mark.asyncio
@pytest.mark.parametrize("at", [utc(2026, 1, 31, 23, 59), utc(2026, 2, 10, 0, 1)])
async def test_delegate_denied_outside_window(
    db_session: AsyncSession,
    request_for_approver: ApprovalRequest,
    delegate: User,
    delegation,
    at,
):
    resolver = AuthorityResolver(db_session)
    decision = await resolver.resolve(request_for_approver, delegate.id, delegate.role, at)

    assert decision.allowed is False
    assert decision.acting_as is None


@pytest.mark.asyncio
async def test_delegate_denied_after_cancel(
    db_session: AsyncSession,
    request_for_approver: ApprovalRequest,
    approver: User,
    delegate: User,
    delegation,
):
    await DelegationRepository.cancel(db_session, delegation.id, approver.id, approver.role)
    await db_session.commit()

    resolver = AuthorityResolver(db_session)
    decision = await resolver.resolve(
        request_for_approver, delegate.id, delegate.role, utc(2026, 2, 5)
    )
    assert decision.allowed is False


@pytest.mark.asyncio
async def test_unrelated_user_denied(
    db_session: AsyncSession,
    request_for_approver: ApprovalRequest,
    outsider: User,
    delegation,
):
    resolver = AuthorityResolver(db_session)
    decision = await resolver.resolve(
        request_for_approver, outsider.id, outsider.role, utc(2026, 2, 5)
    )
    assert decision.allowed is False


@pytest.mark.asyncio
async def test_requester_can_view_but_not_decide(
    db_session: AsyncSession, request_for_approver: ApprovalRequest, requester: User
):
    resolver = AuthorityResolver(db_session)

    assert await resolver.can_view(request_for_approver, requester.id, requester.role)
    decision = await resolver.resolve(
        request_for_approver, requester.id, requester.role, utc(2026, 2, 5)
    )
    assert decision.allowed is False


@pytest.mark.asyncio
async def test_visible_approver_ids(
    db_session: AsyncSession, approver: User, delegate: User, delegation
):
    resolver = AuthorityResolver(db_session)

    assert await resolver.visible_approver_ids(delegate.id, utc(2026, 2, 5)) == {
        delegate.id,
        approver.id,
    }
    assert await resolver.visible_approver_ids(delegate.id, utc(2026, 2, 20)) == {delegate.id}
    assert await resolver.visible_approver_ids(approver.id, utc(2026, 2, 5)) == {approver.id}
