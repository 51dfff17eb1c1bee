"""
Commission query layer.

Read-only views over the commission ledger for a referrer: record counts,
summed amounts and detailed rows per level.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config.business_constants import UNKNOWN_USER_NAME
from storefront.models.user_profile import UserProfile
from storefront.repositories.referral_commission_repository import (
    ReferralCommissionRepository,
)
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)


@dataclass
class CommissionDetail:
    """Commission row enriched with the referee's display fields."""

    commission_id: uuid.UUID
    referee_id: uuid.UUID
    level: int
    amount: Decimal
    trigger_type: str
    created_at: datetime
    referee_name: str
    referee_referral_code: str | None


class CommissionQueryService:
    """Per-level commission views keyed by auth user ID."""

    def __init__(
        self,
        session: AsyncSession,
        profile_repo: UserProfileRepository | None = None,
        commission_repo: ReferralCommissionRepository | None = None,
    ) -> None:
        """
        Initialize commission query service.

        Args:
            session: Database session
            profile_repo: Profile repository, created from session if omitted
            commission_repo: Commission repository, created from session
                if omitted
        """
        self.session = session
        self.profile_repo = profile_repo or UserProfileRepository(session)
        self.commission_repo = (
            commission_repo or ReferralCommissionRepository(session)
        )

    async def _resolve(self, user_id: uuid.UUID) -> UserProfile | None:
        return await self.profile_repo.get_by_user_id(user_id)

    async def count_by_level(self, user_id: uuid.UUID) -> dict[int, int]:
        """
        Count commissions earned by a user per level.

        Args:
            user_id: Auth ID of the referrer

        Returns:
            {level: count}, only levels with at least one record;
            empty for unknown users
        """
        profile = await self._resolve(user_id)
        if profile is None:
            return {}
        return await self.commission_repo.get_level_counts(profile.id)

    async def totals_by_level(self, user_id: uuid.UUID) -> dict[int, Decimal]:
        """
        Sum commissions earned by a user per level.

        Args:
            user_id: Auth ID of the referrer

        Returns:
            {level: total amount}, only levels with records
        """
        profile = await self._resolve(user_id)
        if profile is None:
            return {}
        return await self.commission_repo.get_level_totals(profile.id)

    async def details_by_level(
        self, user_id: uuid.UUID
    ) -> dict[int, list[CommissionDetail]]:
        """
        Get commissions earned by a user grouped by level.

        Within a level, most recent first. Referees without a name are
        shown as "Unknown User".

        Args:
            user_id: Auth ID of the referrer

        Returns:
            {level: [CommissionDetail, ...]}, only levels with records
        """
        profile = await self._resolve(user_id)
        if profile is None:
            return {}

        rows = await self.commission_repo.get_with_referees(profile.id)

        details: dict[int, list[CommissionDetail]] = {}
        for commission, referee_name, referee_code in rows:
            details.setdefault(commission.level, []).append(CommissionDetail(
                commission_id=commission.id,
                referee_id=commission.referee_id,
                level=commission.level,
                amount=commission.commission_amount,
                trigger_type=commission.trigger_type,
                created_at=commission.created_at,
                referee_name=referee_name or UNKNOWN_USER_NAME,
                referee_referral_code=referee_code,
            ))
        return details
