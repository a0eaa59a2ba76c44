"""ApprovalRequest model."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.clock import utcnow
from app.database import Base


class ApprovalRequest(Base):
    """Approval request model."""

    __tablename__ = "approval_requests"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    request_type: Mapped[str] = mapped_column(
        String(20), default="Other", nullable=False
    )  # Leave, Purchase, Budget, Project, Policy, Other
    requester_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    approver_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Who actually acted; differs from approver_id when an admin or delegate decided
    actual_approver_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default="Pending", nullable=False, index=True
    )  # Pending, Approved, Rejected, Cancelled
    priority: Mapped[str] = mapped_column(
        String(20), default="Medium", nullable=False
    )  # Low, Medium, High, Urgent
    amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships (load explicitly with selectinload)
    requester: Mapped["User"] = relationship("User", foreign_keys=[requester_id])
    approver: Mapped["User"] = relationship("User", foreign_keys=[approver_id])
    actual_approver: Mapped["User | None"] = relationship("User", foreign_keys=[actual_approver_id])
    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    # Indexes
    __table_args__ = (
        Index("ix_approval_requests_approver_id_status", "approver_id", "status"),
        Index("ix_approval_requests_requester_id_created_at", "requester_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ApprovalRequest(id={self.id}, approver_id={self.approver_id}, status={self.status})>"
