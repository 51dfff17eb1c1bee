"""
Referral service.

Entry point for the referral reward program: upline chains, commission
distribution on subscription activation and per-level earnings views.
"""

import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config.settings import settings
from storefront.models.enums import CommissionTrigger
from storefront.repositories.referral_commission_repository import (
    ReferralCommissionRepository,
)
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)
from storefront.services.base_service import BaseService
from storefront.services.referral import (
    ChainLink,
    CommissionDetail,
    CommissionDistributor,
    CommissionQueryService,
    DistributionResult,
    ReferralChainWalker,
    RewardConfig,
    RewardConfigService,
)


class ReferralService(BaseService):
    """Referral service composing config, chain walk, distribution and queries."""

    def __init__(
        self, session: AsyncSession, timeout: float | None = None
    ) -> None:
        """
        Initialize referral service.

        Args:
            session: Async database session
            timeout: Per-call storage timeout, settings.request_timeout_seconds
                by default
        """
        super().__init__(session)
        if timeout is None:
            timeout = settings.request_timeout_seconds

        self.profile_repo = UserProfileRepository(session)
        self.commission_repo = ReferralCommissionRepository(session)
        self.config_service = RewardConfigService(session, timeout=timeout)
        self.chain_walker = ReferralChainWalker(
            self.profile_repo, timeout=timeout
        )
        self.distributor = CommissionDistributor(
            session,
            config_service=self.config_service,
            chain_walker=self.chain_walker,
            profile_repo=self.profile_repo,
            commission_repo=self.commission_repo,
            timeout=timeout,
        )
        self.queries = CommissionQueryService(
            session,
            profile_repo=self.profile_repo,
            commission_repo=self.commission_repo,
        )

    async def get_chain(self, user_id: uuid.UUID) -> list[ChainLink]:
        """
        Get a user's upline, direct referrer first (up to 7 levels).

        Args:
            user_id: Auth user ID

        Returns:
            List of chain links
        """
        return await self.chain_walker.get_chain(user_id)

    async def process_subscription_rewards(
        self, user_id: uuid.UUID
    ) -> DistributionResult:
        """
        Distribute referral rewards for a subscription activation.

        Never raises: any failure is reported in the result.

        Args:
            user_id: Auth ID of the user who activated

        Returns:
            DistributionResult
        """
        try:
            return await self.distributor.distribute(
                user_id, CommissionTrigger.SUBSCRIPTION_ACTIVATION
            )
        except Exception as e:
            self.logger.exception(
                "Unexpected error while processing subscription rewards",
                extra={"user_id": str(user_id), "error": str(e)},
            )
            try:
                await self.rollback()
            except Exception as rollback_error:
                self.logger.error(f"Rollback failed: {rollback_error}")
            return DistributionResult(
                success=False,
                error_message=f"Failed to process subscription rewards: {e}",
            )

    async def count_by_level(self, user_id: uuid.UUID) -> dict[int, int]:
        """Commission record counts per level for a referrer."""
        return await self.queries.count_by_level(user_id)

    async def totals_by_level(
        self, user_id: uuid.UUID
    ) -> dict[int, Decimal]:
        """Commission totals per level for a referrer."""
        return await self.queries.totals_by_level(user_id)

    async def details_by_level(
        self, user_id: uuid.UUID
    ) -> dict[int, list[CommissionDetail]]:
        """Commission rows per level for a referrer, most recent first."""
        return await self.queries.details_by_level(user_id)

    async def get_reward_config(self) -> RewardConfig:
        """Active reward table."""
        return await self.config_service.load_config()

    async def update_reward_config(
        self, partial: Mapping[Any, Any]
    ) -> RewardConfig:
        """
        Update reward amounts for some levels (admin operation).

        Args:
            partial: {level: amount}, e.g. {1: "250", "level2": 20}

        Returns:
            New active RewardConfig

        Raises:
            RewardConfigError: On unknown levels or negative amounts
        """
        return await self.config_service.update_config(partial)
