"""
SubscriptionRequest model.

Manual UPI payment verification: the user submits the UPI transaction id
of the subscription payment and an admin approves or rejects it.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from storefront.models.base import Base
from storefront.models.enums import RequestStatus
from storefront.models.types import MoneyType


class SubscriptionRequest(Base):
    """Subscription payment awaiting admin verification."""

    __tablename__ = "subscription_requests"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="check_subscription_request_status",
        ),
        CheckConstraint(
            "amount > 0", name="check_subscription_request_amount_positive"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("99.00"), nullable=False
    )
    upi_transaction_id: Mapped[str] = mapped_column(
        String(100), nullable=False
    )
    payment_proof_url: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    payment_proof_filename: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.PENDING, nullable=False, index=True
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    @property
    def is_pending(self) -> bool:
        """Check if request still awaits verification."""
        return self.status == RequestStatus.PENDING

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SubscriptionRequest(id={self.id}, user_id={self.user_id}, "
            f"status={self.status}, upi_txn={self.upi_transaction_id})>"
        )
