"""
WithdrawalRequest model.

Payout of referral earnings to a UPI id. The requested amount is reserved
from available_balance when the request is created.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.models.base import Base
from storefront.models.enums import RequestStatus
from storefront.models.types import MoneyType


class WithdrawalRequest(Base):
    """Withdrawal of referral earnings awaiting admin processing."""

    __tablename__ = "withdrawal_requests"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="check_withdrawal_request_status",
        ),
        CheckConstraint(
            "amount > 0", name="check_withdrawal_request_amount_positive"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    upi_id: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.PENDING, nullable=False, index=True
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True
    )

    @property
    def is_pending(self) -> bool:
        """Check if request still awaits processing."""
        return self.status == RequestStatus.PENDING

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WithdrawalRequest(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
