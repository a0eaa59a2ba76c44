"""Approval request lifecycle.

State machine: Pending -> Approved | Rejected | Cancelled. Every terminal
state is absorbing. approve/reject need the Authority Resolver's consent and
record who actually acted; cancel/update belong to the requester (or an
admin) and only work while the request is Pending.
"""

from uuid import UUID

from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.authority_resolver import AuthorityResolver
from app.core.clock import Clock, system_clock
from app.core.errors import AuthorizationError, NotFoundError, StateError, ValidationError
from app.core.notifier import NotificationEvent, Notifier, safe_notify
from app.logging_config import get_logger
from app.models.approval_request import ApprovalRequest
from app.models.comment import Comment
from app.models.user import User
from app.schemas.request import (
    RequestCreate,
    RequestFilter,
    RequestPriority,
    RequestStatus,
    RequestUpdate,
)
from app.schemas.user import UserRole

logger = get_logger(__name__)

APPROVING_ROLES = {UserRole.APPROVER.value, UserRole.ADMIN.value}

# Urgent first when listing pending work
PRIORITY_RANK = {
    RequestPriority.URGENT.value: 0,
    RequestPriority.HIGH.value: 1,
    RequestPriority.MEDIUM.value: 2,
    RequestPriority.LOW.value: 3,
}

EDITABLE_FIELDS = ("title", "description", "request_type", "approver_id", "priority", "amount")


def with_related(query):
    """Load people and comments explicitly instead of on attribute access."""
    return query.options(
        selectinload(ApprovalRequest.requester),
        selectinload(ApprovalRequest.approver),
        selectinload(ApprovalRequest.actual_approver),
        selectinload(ApprovalRequest.comments).selectinload(Comment.user),
    )


class RequestManager:
    """Approval request workflow for one acting user."""

    def __init__(
        self,
        actor: User,
        db: AsyncSession,
        notifier: Notifier | None = None,
        clock: Clock = system_clock,
    ):
        """Initialize RequestManager.

        Args:
            actor: Authenticated user performing the operations
            db: AsyncSession for database operations
            notifier: Optional notifier for requester/approver emails
            clock: Time source for review timestamps and delegation lookups
        """
        self.actor = actor
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.resolver = AuthorityResolver(db, clock)
        self.logger = get_logger(__name__)

    async def load_request(self, request_id: UUID, lock: bool = False) -> ApprovalRequest:
        """Load a request with related users and comments.

        Args:
            request_id: Request UUID
            lock: Take a row lock for the rest of the transaction

        Raises:
            NotFoundError: If the request does not exist
        """
        query = with_related(select(ApprovalRequest).where(ApprovalRequest.id == request_id))
        if lock:
            query = query.with_for_update(of=ApprovalRequest)
        result = await self.db.execute(query.execution_options(populate_existing=True))
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError("Request", request_id)
        return request

    async def _validate_approver(self, approver_id: UUID, requester_id: UUID) -> User:
        if approver_id == requester_id:
            raise ValidationError("You cannot approve your own request")
        approver = await self.db.get(User, approver_id)
        if approver is None:
            raise ValidationError("Approver not found", approver_id=str(approver_id))
        if approver.role not in APPROVING_ROLES or not approver.is_active:
            raise ValidationError(
                "Selected user cannot approve requests", approver_id=str(approver_id)
            )
        return approver

    def _require_pending(self, request: ApprovalRequest, verb: str) -> None:
        if request.status != RequestStatus.PENDING:
            raise StateError(
                f"Cannot {verb} request with status: {request.status}",
                request_id=str(request.id),
                status=request.status,
            )

    def _require_owner(self, request: ApprovalRequest, verb: str) -> None:
        if request.requester_id != self.actor.id and self.actor.role != UserRole.ADMIN:
            raise AuthorizationError(
                f"Not authorized to {verb} this request", request_id=str(request.id)
            )

    async def create_request(self, data: RequestCreate) -> ApprovalRequest:
        """Submit a new Pending request to the chosen approver."""
        approver = await self._validate_approver(data.approver_id, self.actor.id)

        now = self.clock.now()
        request = ApprovalRequest(
            title=data.title.strip(),
            description=data.description.strip(),
            request_type=data.request_type.value,
            requester_id=self.actor.id,
            approver_id=approver.id,
            status=RequestStatus.PENDING.value,
            priority=data.priority.value,
            amount=data.amount,
            submitted_at=now,
        )
        self.db.add(request)
        await self.db.commit()

        self.logger.info(
            "request_created",
            request_id=str(request.id),
            requester_id=str(self.actor.id),
            approver_id=str(approver.id),
            priority=request.priority,
        )

        await safe_notify(
            self.notifier,
            NotificationEvent.REQUEST_CREATED,
            {
                "to": approver.email,
                "request_id": str(request.id),
                "title": request.title,
                "requester_name": self.actor.name,
                "priority": request.priority,
                "request_type": request.request_type,
            },
        )
        return request

    async def _decide(self, request_id: UUID, verb: str) -> tuple[ApprovalRequest, str]:
        """Shared approve/reject guards. Returns the locked request and the acting capacity."""
        request = await self.load_request(request_id, lock=True)

        if request.status != RequestStatus.PENDING:
            raise StateError(
                f"Request is already {request.status.lower()}",
                request_id=str(request.id),
                status=request.status,
            )

        decision = await self.resolver.resolve(
            request, self.actor.id, self.actor.role, self.clock.now()
        )
        if not decision.allowed:
            self.logger.warning(
                f"{verb}_request_denied",
                request_id=str(request.id),
                user_id=str(self.actor.id),
                approver_id=str(request.approver_id),
            )
            raise AuthorizationError(
                f"Not authorized to {verb} this request", request_id=str(request.id)
            )
        return request, decision.acting_as.value

    async def approve_request(self, request_id: UUID) -> ApprovalRequest:
        """Approve a Pending request as approver, admin or active delegate.

        Raises:
            NotFoundError: Request does not exist
            StateError: Request is not Pending
            AuthorizationError: Actor has no authority over the request
        """
        request, acting_as = await self._decide(request_id, "approve")

        request.status = RequestStatus.APPROVED.value
        request.reviewed_at = self.clock.now()
        request.actual_approver_id = self.actor.id
        await self.db.commit()

        self.logger.info(
            "request_approved",
            request_id=str(request.id),
            actual_approver_id=str(self.actor.id),
            acting_as=acting_as,
        )

        await safe_notify(
            self.notifier,
            NotificationEvent.REQUEST_APPROVED,
            {
                "to": request.requester.email,
                "request_id": str(request.id),
                "title": request.title,
                "reviewer_name": self.actor.name,
                "acting_as": acting_as,
            },
        )
        return request

    async def reject_request(self, request_id: UUID, reason: str) -> ApprovalRequest:
        """Reject a Pending request. A non-blank reason is mandatory.

        Raises:
            ValidationError: Reason missing or blank
            NotFoundError, StateError, AuthorizationError: As for approve_request
        """
        if reason is None or not reason.strip():
            raise ValidationError("A rejection reason is required", request_id=str(request_id))

        request, acting_as = await self._decide(request_id, "reject")

        request.status = RequestStatus.REJECTED.value
        request.rejection_reason = reason.strip()
        request.reviewed_at = self.clock.now()
        request.actual_approver_id = self.actor.id
        await self.db.commit()

        self.logger.info(
            "request_rejected",
            request_id=str(request.id),
            actual_approver_id=str(self.actor.id),
            acting_as=acting_as,
        )

        await safe_notify(
            self.notifier,
            NotificationEvent.REQUEST_REJECTED,
            {
                "to": request.requester.email,
                "request_id": str(request.id),
                "title": request.title,
                "reviewer_name": self.actor.name,
                "reason": request.rejection_reason,
                "acting_as": acting_as,
            },
        )
        return request

    async def cancel_request(self, request_id: UUID) -> ApprovalRequest:
        """Withdraw a Pending request (requester or admin). No actual approver is recorded."""
        request = await self.load_request(request_id, lock=True)
        self._require_owner(request, "cancel")
        self._require_pending(request, "cancel")

        request.status = RequestStatus.CANCELLED.value
        await self.db.commit()

        self.logger.info(
            "request_cancelled",
            request_id=str(request.id),
            cancelled_by=str(self.actor.id),
        )

        await safe_notify(
            self.notifier,
            NotificationEvent.REQUEST_CANCELLED,
            {
                "to": request.approver.email,
                "request_id": str(request.id),
                "title": request.title,
                "requester_name": request.requester.name,
            },
        )
        return request

    async def update_request(self, request_id: UUID, data: RequestUpdate) -> ApprovalRequest:
        """Edit a Pending request's details (requester or admin)."""
        request = await self.load_request(request_id, lock=True)
        self._require_owner(request, "update")
        self._require_pending(request, "update")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "approver_id" in changes:
            await self._validate_approver(changes["approver_id"], request.requester_id)

        for field in EDITABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if hasattr(value, "value"):
                value = value.value
            elif isinstance(value, str):
                value = value.strip()
            setattr(request, field, value)

        await self.db.commit()

        self.logger.info(
            "request_updated",
            request_id=str(request.id),
            updated_by=str(self.actor.id),
            fields=sorted(changes),
        )
        return request

    async def get_request(self, request_id: UUID) -> ApprovalRequest:
        """Get a request visible to the actor."""
        request = await self.load_request(request_id)
        if not await self.resolver.can_view(request, self.actor.id, self.actor.role):
            raise AuthorizationError(
                "Not authorized to view this request", request_id=str(request_id)
            )
        return request

    async def list_requests(
        self,
        filters: RequestFilter | None = None,
        pending_only: bool = False,
    ) -> list[ApprovalRequest]:
        """List the requests visible to the actor.

        Requesters see what they submitted. Approvers see requests addressed
        to them plus requests addressed to anyone whose active delegation
        names them. Admins see everything. ``filters.mine`` narrows any role
        to the actor's own submissions.
        """
        filters = filters or RequestFilter()
        query = with_related(select(ApprovalRequest))

        if filters.mine or self.actor.role == UserRole.REQUESTER:
            query = query.where(ApprovalRequest.requester_id == self.actor.id)
        elif self.actor.role == UserRole.APPROVER:
            approver_ids = await self.resolver.visible_approver_ids(self.actor.id)
            query = query.where(ApprovalRequest.approver_id.in_(approver_ids))

        if pending_only:
            query = query.where(ApprovalRequest.status == RequestStatus.PENDING.value)
        elif filters.status:
            query = query.where(ApprovalRequest.status == filters.status.value)
        if filters.priority:
            query = query.where(ApprovalRequest.priority == filters.priority.value)
        if filters.request_type:
            query = query.where(ApprovalRequest.request_type == filters.request_type.value)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    ApprovalRequest.title.ilike(pattern),
                    ApprovalRequest.description.ilike(pattern),
                )
            )

        if pending_only:
            rank = case(PRIORITY_RANK, value=ApprovalRequest.priority, else_=len(PRIORITY_RANK))
            query = query.order_by(rank, ApprovalRequest.created_at.desc())
        else:
            query = query.order_by(ApprovalRequest.created_at.desc())

        result = await self.db.execute(query)
        requests = list(result.scalars().all())

        self.logger.info(
            "requests_listed",
            user_id=str(self.actor.id),
            role=self.actor.role,
            count=len(requests),
            pending_only=pending_only,
        )
        return requests
