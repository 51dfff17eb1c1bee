"""
User profile service.

Registers storefront profiles (referral code, registration number, direct
referrer) and reports referral statistics.
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config.business_constants import (
    REFERRAL_CODE_MAX_ATTEMPTS,
    REGISTRATION_NUMBER_PREFIX,
)
from storefront.config.settings import settings
from storefront.models.user_profile import UserProfile
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)
from storefront.services.base_service import BaseService, transaction
from storefront.utils.exceptions import (
    ProfileAlreadyExistsError,
    StorefrontError,
)
from storefront.utils.referral_code import (
    build_referral_link,
    generate_referral_code,
    next_registration_number,
    normalize_referral_code,
)


@dataclass
class ReferralStats:
    """Referral earnings summary shown on a user's dashboard."""

    referral_code: str
    referral_link: str
    total_referrals: int
    total_earnings: Decimal
    available_balance: Decimal
    withdrawn_amount: Decimal


class UserProfileService(BaseService):
    """User profile service."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user profile service."""
        super().__init__(session)
        self.profile_repo = UserProfileRepository(session)

    @transaction
    async def register_profile(
        self,
        user_id: uuid.UUID,
        full_name: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        referral_code: str | None = None,
    ) -> UserProfile:
        """
        Create the storefront profile for a new auth identity.

        The referrer is fixed here and never changes afterwards. An unknown
        referral code does not block registration; the profile is created
        without a referrer.

        Args:
            user_id: Auth user ID
            full_name: Display name
            phone: Phone number
            email: Email address
            referral_code: Code of the referring user, case-insensitive

        Returns:
            Created profile

        Raises:
            ProfileAlreadyExistsError: If the user already has a profile
        """
        if await self.profile_repo.exists(user_id=user_id):
            raise ProfileAlreadyExistsError(
                f"Profile for user {user_id} already exists"
            )

        referred_by = None
        if normalize_referral_code(referral_code):
            referrer = await self.profile_repo.get_by_referral_code(
                referral_code
            )
            if referrer is None:
                self.logger.warning(
                    "Unknown referral code at registration, no referrer set",
                    extra={"user_id": str(user_id), "code": referral_code},
                )
            else:
                referred_by = referrer.id

        current_max = await self.profile_repo.get_max_registration_sequence(
            REGISTRATION_NUMBER_PREFIX
        )

        profile = await self.profile_repo.create(
            user_id=user_id,
            full_name=full_name,
            phone=phone,
            email=email,
            referral_code=await self._unique_referral_code(),
            registration_number=next_registration_number(current_max),
            referred_by=referred_by,
        )

        self.logger.info(
            "User profile registered",
            extra={
                "user_id": str(user_id),
                "profile_id": str(profile.id),
                "registration_number": profile.registration_number,
                "referred_by": str(referred_by) if referred_by else None,
            },
        )
        return profile

    async def _unique_referral_code(self) -> str:
        for _ in range(REFERRAL_CODE_MAX_ATTEMPTS):
            code = generate_referral_code()
            if not await self.profile_repo.exists(referral_code=code):
                return code
        raise StorefrontError(
            f"Could not generate a unique referral code in "
            f"{REFERRAL_CODE_MAX_ATTEMPTS} attempts"
        )

    async def get_profile(self, user_id: uuid.UUID) -> UserProfile | None:
        """Get profile by auth user ID."""
        return await self.profile_repo.get_by_user_id(user_id)

    async def validate_referral_code(self, code: str | None) -> bool:
        """
        Check that a referral code belongs to an existing profile.

        Args:
            code: Code as typed by the user

        Returns:
            True if the code is known
        """
        if not normalize_referral_code(code):
            return False
        return await self.profile_repo.get_by_referral_code(code) is not None

    async def get_referred_users(
        self, user_id: uuid.UUID
    ) -> list[UserProfile]:
        """
        Get profiles registered with this user's referral code.

        Args:
            user_id: Auth ID of the referrer

        Returns:
            Direct referrals, empty for unknown users
        """
        profile = await self.profile_repo.get_by_user_id(user_id)
        if profile is None:
            return []
        return await self.profile_repo.find_by(referred_by=profile.id)

    async def get_referral_stats(
        self, user_id: uuid.UUID
    ) -> ReferralStats | None:
        """
        Get referral statistics for a user.

        Args:
            user_id: Auth user ID

        Returns:
            ReferralStats or None if the user has no profile
        """
        profile = await self.profile_repo.get_by_user_id(user_id)
        if profile is None:
            return None

        total_referrals = await self.profile_repo.count_direct_referrals(
            profile.id
        )

        return ReferralStats(
            referral_code=profile.referral_code,
            referral_link=build_referral_link(
                settings.site_url, profile.referral_code
            ),
            total_referrals=total_referrals,
            total_earnings=profile.total_earnings,
            available_balance=profile.available_balance,
            withdrawn_amount=profile.withdrawn_amount,
        )
