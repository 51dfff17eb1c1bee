"""
ReferralCommission model.

Append-only ledger of referral rewards. One row per (referee, triggering
activation, level); the unique constraint is what makes distribution
idempotent under retries and concurrent triggers.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from storefront.models.base import Base
from storefront.models.enums import CommissionTrigger
from storefront.models.types import MoneyType


class ReferralCommission(Base):
    """
    ReferralCommission entity.

    Attributes:
        id: Primary key
        referrer_id: Profile receiving the reward
        referee_id: Profile whose activation triggered the reward
        level: Distance from referee to referrer (1 = direct)
        commission_amount: Reward credited to the referrer
        trigger_type: Event kind, e.g. "subscription_activation"
        trigger_user_id: Auth identity whose activation fired the event
        created_at: When the reward was credited
    """

    __tablename__ = "referral_commissions"
    __table_args__ = (
        UniqueConstraint(
            "referee_id",
            "trigger_user_id",
            "level",
            name="uq_referral_commissions_referee_trigger_level",
        ),
        CheckConstraint(
            "level >= 1 AND level <= 7",
            name="check_referral_commission_level_range",
        ),
        CheckConstraint(
            "commission_amount >= 0",
            name="check_referral_commission_amount_non_negative",
        ),
    )

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # Participants
    referrer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Reward
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )

    # Trigger
    trigger_type: Mapped[str] = mapped_column(
        String(50),
        default=CommissionTrigger.SUBSCRIPTION_ACTIVATION,
        nullable=False,
        index=True,
    )
    trigger_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralCommission(id={self.id}, "
            f"referrer_id={self.referrer_id}, "
            f"referee_id={self.referee_id}, "
            f"level={self.level}, "
            f"amount={self.commission_amount})>"
        )
