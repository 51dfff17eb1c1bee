"""
Referral commission distributor.

Credits every referrer in the activating user's upline with the configured
fixed reward for their level. Each level is written as one ledger row plus
one balance increment; the ledger's unique key (referee, trigger user,
level) makes repeated and concurrent calls for the same activation
credit each referrer at most once.
"""

import asyncio
import uuid
from collections.abc import Awaitable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config.business_constants import TRIGGER_TYPES
from storefront.models.enums import CommissionTrigger
from storefront.repositories.referral_commission_repository import (
    ReferralCommissionRepository,
)
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)
from storefront.services.referral.chain_walker import (
    ChainLink,
    ReferralChainWalker,
)
from storefront.services.referral.reward_config import (
    RewardConfig,
    RewardConfigService,
)
from storefront.utils.exceptions import (
    STORAGE_ERRORS,
    LedgerDivergenceError,
    is_retryable,
)


T = TypeVar("T")


@dataclass
class CreditedCommission:
    """A ledger row written by this distribution."""

    commission_id: uuid.UUID
    referrer_profile_id: uuid.UUID
    level: int
    amount: Decimal


@dataclass
class DistributionResult:
    """Result of one distribution call."""

    success: bool
    total_distributed: Decimal = Decimal("0")
    levels_processed: int = 0
    error_message: str | None = None
    records: list[CreditedCommission] = field(default_factory=list)


class CommissionDistributor:
    """
    Distributes subscription activation rewards up the referral chain.

    Holds no in-process locks; safe to run from several processes against
    one database.
    """

    def __init__(
        self,
        session: AsyncSession,
        config_service: RewardConfigService | None = None,
        chain_walker: ReferralChainWalker | None = None,
        profile_repo: UserProfileRepository | None = None,
        commission_repo: ReferralCommissionRepository | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize commission distributor.

        Args:
            session: Async database session
            config_service: Reward table source
            chain_walker: Upline resolver
            profile_repo: Profile store
            commission_repo: Commission ledger
            timeout: Seconds before a single write counts as failed
        """
        self.session = session
        self.timeout = timeout
        self.profile_repo = profile_repo or UserProfileRepository(session)
        self.commission_repo = (
            commission_repo or ReferralCommissionRepository(session)
        )
        self.config_service = config_service or RewardConfigService(
            session, timeout=timeout
        )
        self.chain_walker = chain_walker or ReferralChainWalker(
            self.profile_repo, timeout=timeout
        )

    async def distribute(
        self,
        activating_user_id: uuid.UUID,
        trigger_type: str = CommissionTrigger.SUBSCRIPTION_ACTIVATION,
        config: RewardConfig | None = None,
    ) -> DistributionResult:
        """
        Distribute rewards for a user's activation.

        All levels are written in one transaction: a failure at any level
        rolls back every ledger row and balance change of this call, and
        the whole call can be retried.

        Args:
            activating_user_id: Auth ID of the user who just activated
            trigger_type: Trigger event kind
            config: Reward table to apply; loaded fresh when omitted

        Returns:
            DistributionResult with the amount and number of levels newly
            credited; success=False if storage failed

        Raises:
            ValueError: If trigger_type is unknown
        """
        if trigger_type not in TRIGGER_TYPES:
            raise ValueError(f"Unknown commission trigger type: {trigger_type}")

        if config is None:
            config = await self.config_service.load_config()

        try:
            referee = await self._bounded(
                self.profile_repo.get_by_user_id(activating_user_id)
            )
        except STORAGE_ERRORS as e:
            return await self._fail(activating_user_id, trigger_type, e)

        if referee is None:
            logger.warning(
                "Commission distribution skipped: user profile not found",
                extra={"user_id": str(activating_user_id)},
            )
            return DistributionResult(
                success=False, error_message="User profile not found"
            )

        chain = await self.chain_walker.get_chain(activating_user_id)
        if not chain:
            logger.debug(
                "No referrers found for user",
                extra={
                    "user_id": str(activating_user_id),
                    "trigger_type": trigger_type,
                },
            )
            return DistributionResult(success=True)

        result = DistributionResult(success=True)

        try:
            for link in chain:
                amount = config.amount_for(link.level)
                commission_id = await self._credit_level(
                    link=link,
                    referee_id=referee.id,
                    amount=amount,
                    trigger_type=trigger_type,
                    trigger_user_id=activating_user_id,
                )
                if commission_id is None:
                    continue

                result.total_distributed += amount
                result.levels_processed += 1
                result.records.append(CreditedCommission(
                    commission_id=commission_id,
                    referrer_profile_id=link.profile_id,
                    level=link.level,
                    amount=amount,
                ))

            await self._bounded(self.session.commit())
        except LedgerDivergenceError as e:
            await self._rollback()
            logger.critical(
                "Commission ledger/balance divergence prevented",
                extra={
                    "error": str(e),
                    "user_id": str(activating_user_id),
                    "trigger_type": trigger_type,
                },
            )
            return DistributionResult(success=False, error_message=str(e))
        except STORAGE_ERRORS as e:
            await self._rollback()
            return await self._fail(activating_user_id, trigger_type, e)

        logger.info(
            "Referral commissions distributed",
            extra={
                "user_id": str(activating_user_id),
                "trigger_type": trigger_type,
                "chain_length": len(chain),
                "total_distributed": str(result.total_distributed),
                "levels_processed": result.levels_processed,
            },
        )
        return result

    async def _credit_level(
        self,
        link: ChainLink,
        referee_id: uuid.UUID,
        amount: Decimal,
        trigger_type: str,
        trigger_user_id: uuid.UUID,
    ) -> uuid.UUID | None:
        """
        Write one level: ledger row first, then the balance increment.

        Returns:
            New commission ID, or None if this level was already credited
        """
        commission_id = await self._bounded(
            self.commission_repo.insert_if_absent(
                referrer_id=link.profile_id,
                referee_id=referee_id,
                level=link.level,
                commission_amount=amount,
                trigger_type=trigger_type,
                trigger_user_id=trigger_user_id,
            )
        )
        if commission_id is None:
            logger.debug(
                "Commission already credited, skipping level",
                extra={
                    "referee_id": str(referee_id),
                    "trigger_user_id": str(trigger_user_id),
                    "level": link.level,
                },
            )
            return None

        credited = await self._bounded(
            self.profile_repo.increment_balance(link.profile_id, amount)
        )
        if not credited:
            raise LedgerDivergenceError(
                f"Referrer {link.profile_id} vanished after commission "
                f"{commission_id} was written (level {link.level})"
            )

        logger.info(
            "Referral commission credited",
            extra={
                "referrer_id": str(link.profile_id),
                "referee_id": str(referee_id),
                "level": link.level,
                "amount": str(amount),
                "trigger_type": trigger_type,
            },
        )
        return commission_id

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except Exception as rollback_error:
            logger.error(
                f"Failed to rollback commission distribution: {rollback_error}"
            )

    async def _fail(
        self, user_id: uuid.UUID, trigger_type: str, error: Exception
    ) -> DistributionResult:
        logger.error(
            "Commission distribution failed",
            extra={
                "error": str(error),
                "user_id": str(user_id),
                "trigger_type": trigger_type,
                "retryable": is_retryable(error),
            },
        )
        return DistributionResult(
            success=False,
            error_message=f"Commission distribution failed: {error}",
        )
