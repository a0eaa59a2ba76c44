"""Delegation model."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.clock import as_utc, utcnow
from app.database import Base


class Delegation(Base):
    """Time-bounded grant of a delegator's approval authority to a delegate.

    Attributes:
        delegator_id: User whose authority is granted
        delegate_id: User receiving the authority
        start_date: Start of the window (inclusive)
        end_date: End of the window (inclusive), strictly after start_date
        is_active: False once cancelled or auto-expired; never flips back
        auto_expired: True only when the expiry sweeper deactivated the row
        reason: Free text supplied by the delegator
    """

    __tablename__ = "delegations"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4, index=True)
    delegator_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    delegate_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    auto_expired: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships (load explicitly with selectinload)
    delegator: Mapped["User"] = relationship("User", foreign_keys=[delegator_id])
    delegate: Mapped["User"] = relationship("User", foreign_keys=[delegate_id])

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_delegations_end_after_start"),
        CheckConstraint("delegator_id <> delegate_id", name="ck_delegations_not_self"),
        Index(
            "ix_delegations_delegator_active_window",
            "delegator_id",
            "is_active",
            "start_date",
            "end_date",
        ),
        Index("ix_delegations_delegate_id_is_active", "delegate_id", "is_active"),
        Index("ix_delegations_is_active_end_date", "is_active", "end_date"),
    )

    def is_currently_active(self, at: datetime) -> bool:
        """Whether this delegation grants authority at the given instant."""
        at = as_utc(at)
        return self.is_active and as_utc(self.start_date) <= at <= as_utc(self.end_date)

    def __repr__(self) -> str:
        return (
            f"<Delegation(id={self.id}, delegator_id={self.delegator_id}, "
            f"delegate_id={self.delegate_id}, is_active={self.is_active})>"
        )
