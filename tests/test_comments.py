"""Tests for request comments."""

import pytest
import pytest_asyncio

from app.core.comment_manager import CommentManager
from app.core.delegation_repository import DelegationRepository
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.core.request_manager import RequestManager
from app.schemas.request import RequestCreate
from tests.conftest import utc


@pytest_asyncio.fixture
async def request_id(db_session, clock, requester, approver):
    manager = RequestManager(actor=requester, db=db_session, clock=clock)
    request = await manager.create_request(
        RequestCreate(title="Desk", description="Standing desk", approver_id=approver.id)
    )
    return request.id


@pytest.mark.asyncio
async def test_requester_and_approver_comment(db_session, clock, request_id, requester, approver):
    first = await CommentManager(requester, db_session, clock).add_comment(
        request_id, "Needed for back issues"
    )
    second = await CommentManager(approver, db_session, clock).add_comment(
        request_id, "  Which model?  "
    )

    assert first.user.id == requester.id
    assert second.comment == "Which model?"

    comments = await CommentManager(requester, db_session, clock).list_comments(request_id)
    assert [c.id for c in comments] == [first.id, second.id]


@pytest.mark.asyncio
async def test_delegate_can_comment_during_delegation(
    db_session, clock, request_id, approver, delegate
):
    await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    await db_session.commit()

    comment = await CommentManager(delegate, db_session, clock).add_comment(request_id, "On it")
    assert comment.user_id == delegate.id


@pytest.mark.asyncio
async def test_outsider_cannot_comment_or_read(db_session, clock, request_id, outsider):
    manager = CommentManager(outsider, db_session, clock)

    with pytest.raises(AuthorizationError, match="comment on"):
        await manager.add_comment(request_id, "Hello")
    with pytest.raises(AuthorizationError):
        await manager.list_comments(request_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "x" * 1001])
async def test_comment_text_validated(db_session, clock, request_id, requester, text):
    with pytest.raises(ValidationError):
        await CommentManager(requester, db_session, clock).add_comment(request_id, text)


@pytest.mark.asyncio
async def test_delete_comment(db_session, clock, request_id, requester, approver, admin):
    comment = await CommentManager(requester, db_session, clock).add_comment(request_id, "Typo")

    with pytest.raises(AuthorizationError):
        await CommentManager(approver, db_session, clock).delete_comment(comment.id)

    await CommentManager(admin, db_session, clock).delete_comment(comment.id)

    with pytest.raises(NotFoundError):
        await CommentManager(requester, db_session, clock).get_comment(comment.id)
