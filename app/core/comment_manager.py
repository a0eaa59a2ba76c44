"""Comments on approval requests."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.authority_resolver import AuthorityResolver
from app.core.clock import Clock, system_clock
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models.approval_request import ApprovalRequest
from app.models.comment import Comment
from app.models.user import User
from app.schemas.user import UserRole

logger = get_logger(__name__)

MAX_COMMENT_LENGTH = 1000


class CommentManager:
    """Adds, lists and deletes comments for one acting user.

    Anyone who can see a request (requester, nominal approver, active
    delegate of the approver, admin) may read and add comments. Only the
    author or an admin may delete one.
    """

    def __init__(self, actor: User, db: AsyncSession, clock: Clock = system_clock):
        self.actor = actor
        self.db = db
        self.resolver = AuthorityResolver(db, clock)

    async def _visible_request(self, request_id: UUID, verb: str) -> ApprovalRequest:
        request = await self.db.get(ApprovalRequest, request_id)
        if request is None:
            raise NotFoundError("Request", request_id)
        if not await self.resolver.can_view(request, self.actor.id, self.actor.role):
            raise AuthorizationError(
                f"Not authorized to {verb} this request", request_id=str(request_id)
            )
        return request

    async def add_comment(self, request_id: UUID, text: str) -> Comment:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Please provide a comment")
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                f"Comment cannot be more than {MAX_COMMENT_LENGTH} characters"
            )

        await self._visible_request(request_id, "comment on")

        comment = Comment(request_id=request_id, user_id=self.actor.id, comment=text)
        self.db.add(comment)
        await self.db.commit()

        logger.info(
            "comment_added",
            comment_id=str(comment.id),
            request_id=str(request_id),
            user_id=str(self.actor.id),
        )
        return await self.get_comment(comment.id)

    async def get_comment(self, comment_id: UUID) -> Comment:
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.id == comment_id)
            .execution_options(populate_existing=True)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def list_comments(self, request_id: UUID) -> list[Comment]:
        """Comments on a request, oldest first."""
        await self._visible_request(request_id, "view")
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.request_id == request_id)
            .order_by(Comment.created_at)
        )
        return list(result.scalars().all())

    async def delete_comment(self, comment_id: UUID) -> None:
        comment = await self.db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        if comment.user_id != self.actor.id and self.actor.role != UserRole.ADMIN:
            raise AuthorizationError(
                "Not authorized to delete this comment", comment_id=str(comment_id)
            )

        await self.db.delete(comment)
        await self.db.commit()
        logger.info("comment_deleted", comment_id=str(comment_id), deleted_by=str(self.actor.id))
