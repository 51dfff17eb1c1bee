"""
UserProfile model.

Storefront profile attached to an auth identity. Holds the referral link
to the direct upline and the referral earnings balances.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from storefront.models.base import Base
from storefront.models.enums import SubscriptionStatus
from storefront.models.types import MoneyType


class UserProfile(Base):
    """
    UserProfile entity.

    Attributes:
        id: Profile identity (referenced by referred_by and commissions)
        user_id: Auth identity the profile belongs to
        referral_code: Unique code other users register with
        registration_number: Sequential member number (MAT1001, ...)
        referred_by: Profile id of the direct referrer, set once at creation
        available_balance: Withdrawable referral earnings
        total_earnings: Lifetime referral earnings
        withdrawn_amount: Lifetime approved withdrawals
        subscription_status: "active" or "inactive"
    """

    __tablename__ = "user_profiles"
    __table_args__ = (
        CheckConstraint(
            'available_balance >= 0',
            name='check_profile_available_balance_non_negative'
        ),
        CheckConstraint(
            'total_earnings >= 0',
            name='check_profile_total_earnings_non_negative'
        ),
        CheckConstraint(
            'withdrawn_amount >= 0',
            name='check_profile_withdrawn_amount_non_negative'
        ),
        CheckConstraint(
            "subscription_status IN ('active', 'inactive')",
            name='check_profile_subscription_status'
        ),
    )

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # Auth identity
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, index=True, nullable=False
    )

    # Contacts
    full_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    phone: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # Referral
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )
    registration_number: Mapped[str | None] = mapped_column(
        String(20), unique=True, nullable=True
    )
    referred_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("user_profiles.id"),
        nullable=True,
        index=True,
    )

    # Balances
    available_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    withdrawn_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Subscription gating
    subscription_status: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionStatus.INACTIVE,
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserProfile(id={self.id}, user_id={self.user_id}, "
            f"referral_code={self.referral_code}, "
            f"referred_by={self.referred_by})>"
        )
