"""
UserProfile repository.

Data access layer for UserProfile model. All balance mutations are single
UPDATE statements so concurrent callers never lose an increment.
"""

import uuid
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.enums import SubscriptionStatus
from storefront.models.user_profile import UserProfile
from storefront.repositories.base import BaseRepository
from storefront.utils.datetime_utils import utc_now
from storefront.utils.referral_code import normalize_referral_code


class UserProfileRepository(BaseRepository[UserProfile]):
    """UserProfile repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user profile repository."""
        super().__init__(UserProfile, session)

    async def get_by_user_id(
        self, user_id: uuid.UUID
    ) -> UserProfile | None:
        """
        Get profile by auth identity.

        Args:
            user_id: Auth user ID

        Returns:
            UserProfile or None
        """
        return await self.get_by(user_id=user_id)

    async def get_by_referral_code(
        self, referral_code: str
    ) -> UserProfile | None:
        """
        Get profile by referral code (case-insensitive).

        Args:
            referral_code: Referral code as typed by the user

        Returns:
            UserProfile or None
        """
        code = normalize_referral_code(referral_code)
        if code is None:
            return None
        return await self.get_by(referral_code=code)

    async def count_direct_referrals(self, profile_id: uuid.UUID) -> int:
        """
        Count profiles registered with this profile's referral code.

        Args:
            profile_id: Referrer profile ID

        Returns:
            Number of level 1 referrals
        """
        return await self.count(referred_by=profile_id)

    async def get_max_registration_sequence(self, prefix: str) -> int | None:
        """
        Get the highest numeric suffix among registration numbers.

        Args:
            prefix: Registration number prefix, e.g. "MAT"

        Returns:
            Highest sequence number or None if no profile has one
        """
        stmt = select(UserProfile.registration_number).where(
            UserProfile.registration_number.like(f"{prefix}%")
        )
        result = await self.session.execute(stmt)

        highest = None
        for (number,) in result.all():
            suffix = number[len(prefix):]
            if suffix.isdigit():
                value = int(suffix)
                if highest is None or value > highest:
                    highest = value
        return highest

    async def increment_balance(
        self, profile_id: uuid.UUID, amount: Decimal
    ) -> bool:
        """
        Credit referral earnings atomically.

        Adds amount to both available_balance and total_earnings.

        Args:
            profile_id: Referrer profile ID
            amount: Amount to credit

        Returns:
            True if the profile was updated, False if it does not exist
        """
        stmt = (
            update(UserProfile)
            .where(UserProfile.id == profile_id)
            .values(
                available_balance=UserProfile.available_balance + amount,
                total_earnings=UserProfile.total_earnings + amount,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def reserve_balance(
        self, user_id: uuid.UUID, amount: Decimal
    ) -> bool:
        """
        Deduct amount from available_balance if enough funds are available.

        Args:
            user_id: Auth user ID
            amount: Amount to reserve for a withdrawal

        Returns:
            True if funds were reserved, False on insufficient balance
        """
        stmt = (
            update(UserProfile)
            .where(
                UserProfile.user_id == user_id,
                UserProfile.available_balance >= amount,
            )
            .values(
                available_balance=UserProfile.available_balance - amount,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def refund_balance(
        self, user_id: uuid.UUID, amount: Decimal
    ) -> bool:
        """
        Return a reserved withdrawal amount to available_balance.

        Args:
            user_id: Auth user ID
            amount: Amount to refund

        Returns:
            True if the profile was updated
        """
        stmt = (
            update(UserProfile)
            .where(UserProfile.user_id == user_id)
            .values(
                available_balance=UserProfile.available_balance + amount,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def add_withdrawn(
        self, user_id: uuid.UUID, amount: Decimal
    ) -> bool:
        """
        Record an approved withdrawal.

        Args:
            user_id: Auth user ID
            amount: Paid out amount

        Returns:
            True if the profile was updated
        """
        stmt = (
            update(UserProfile)
            .where(UserProfile.user_id == user_id)
            .values(
                withdrawn_amount=UserProfile.withdrawn_amount + amount,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_subscription_status(self, user_id: uuid.UUID) -> str | None:
        """
        Read subscription status straight from the table.

        Bypasses profiles already loaded in the session, which bulk
        status updates do not refresh.

        Args:
            user_id: Auth user ID

        Returns:
            Status or None if the user has no profile
        """
        stmt = select(UserProfile.subscription_status).where(
            UserProfile.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_subscription_status(
        self, user_id: uuid.UUID, status: str
    ) -> bool:
        """
        Update subscription status.

        Args:
            user_id: Auth user ID
            status: "active" or "inactive"

        Returns:
            True if the profile was updated
        """
        stmt = (
            update(UserProfile)
            .where(UserProfile.user_id == user_id)
            .values(subscription_status=status, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_active_referred_user_ids(self) -> list[uuid.UUID]:
        """
        Get auth IDs of subscribed users who registered with a referral code.

        Returns:
            List of auth user IDs, oldest profile first
        """
        stmt = (
            select(UserProfile.user_id)
            .where(
                UserProfile.subscription_status == SubscriptionStatus.ACTIVE,
                UserProfile.referred_by.is_not(None),
            )
            .order_by(UserProfile.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
