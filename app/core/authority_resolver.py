"""Delegation-aware approval authority.

Decides, at a given instant, whether an acting user may approve or reject a
request and in which capacity. Checks run in a fixed order:

1. Admins are always allowed and never consult delegations.
2. The nominal approver is always allowed, even while their own outgoing
   delegation is active.
3. The delegate named by the approver's active delegation is allowed.
4. Nobody else is.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.delegation_repository import DelegationRepository
from app.logging_config import get_logger
from app.models.approval_request import ApprovalRequest
from app.schemas.user import UserRole

logger = get_logger(__name__)


class ActingAs(str, Enum):
    """Capacity in which an authorized user acts on a request."""

    APPROVER = "approver"
    ADMIN = "admin"
    DELEGATE = "delegate"


@dataclass(frozen=True)
class AuthorityDecision:
    """Outcome of an authority check."""

    allowed: bool
    acting_as: ActingAs | None = None
    delegation_id: UUID | None = None


DENIED = AuthorityDecision(allowed=False)


class AuthorityResolver:
    """Resolves who may act as approver for a request."""

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    async def resolve(
        self,
        request: ApprovalRequest,
        acting_user_id: UUID,
        acting_user_role: str,
        at: datetime | None = None,
    ) -> AuthorityDecision:
        """Decide whether acting_user_id may approve or reject the request.

        Args:
            request: Request being acted on
            acting_user_id: User attempting the action
            acting_user_role: That user's role
            at: Instant to evaluate delegations at, defaults to clock.now()

        Returns:
            AuthorityDecision with the capacity the user acts in
        """
        if acting_user_role == UserRole.ADMIN:
            return AuthorityDecision(allowed=True, acting_as=ActingAs.ADMIN)

        if acting_user_id == request.approver_id:
            return AuthorityDecision(allowed=True, acting_as=ActingAs.APPROVER)

        at = at or self.clock.now()
        delegation = await DelegationRepository.get_active_delegate(
            self.db, request.approver_id, at
        )
        if delegation is not None and delegation.delegate_id == acting_user_id:
            logger.debug(
                "authority_via_delegation",
                request_id=str(request.id),
                delegation_id=str(delegation.id),
                delegate_id=str(acting_user_id),
            )
            return AuthorityDecision(
                allowed=True,
                acting_as=ActingAs.DELEGATE,
                delegation_id=delegation.id,
            )

        return DENIED

    async def can_view(
        self,
        request: ApprovalRequest,
        acting_user_id: UUID,
        acting_user_role: str,
        at: datetime | None = None,
    ) -> bool:
        """Requester, or anyone resolve() would let decide the request."""
        if acting_user_id == request.requester_id:
            return True
        decision = await self.resolve(request, acting_user_id, acting_user_role, at)
        return decision.allowed

    async def visible_approver_ids(
        self,
        user_id: UUID,
        at: datetime | None = None,
    ) -> set[UUID]:
        """Approver IDs whose requests the user may act on right now.

        The user's own ID plus every delegator whose active delegation names
        the user. Request listings filter on this set so that what a user sees
        matches what resolve() lets them decide.
        """
        at = at or self.clock.now()
        delegators = await DelegationRepository.get_delegators_for(self.db, user_id, at)
        return {user_id, *delegators}
