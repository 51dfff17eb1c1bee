"""
Referral commission repository.

Data access layer for the ReferralCommission ledger.
"""

import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.referral_commission import ReferralCommission
from storefront.models.user_profile import UserProfile
from storefront.repositories.base import BaseRepository
from storefront.utils.datetime_utils import utc_now


# Columns of uq_referral_commissions_referee_trigger_level
IDEMPOTENCY_KEY = ("referee_id", "trigger_user_id", "level")


class ReferralCommissionRepository(BaseRepository[ReferralCommission]):
    """Referral commission repository with ledger-specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral commission repository."""
        super().__init__(ReferralCommission, session)

    def _dialect_insert(self):
        """Pick the INSERT construct supporting ON CONFLICT for the bound engine."""
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise NotImplementedError(
            f"insert_if_absent is not supported on {dialect}"
        )

    async def insert_if_absent(
        self,
        referrer_id: uuid.UUID,
        referee_id: uuid.UUID,
        level: int,
        commission_amount: Decimal,
        trigger_type: str,
        trigger_user_id: uuid.UUID,
    ) -> uuid.UUID | None:
        """
        Insert a commission row unless one exists for the idempotency key.

        Uses INSERT ... ON CONFLICT DO NOTHING so concurrent callers are
        serialized by the unique index instead of a read-then-write check.

        Args:
            referrer_id: Profile receiving the reward
            referee_id: Profile whose activation triggered the reward
            level: Referral level (1-7)
            commission_amount: Reward amount
            trigger_type: Trigger event kind
            trigger_user_id: Auth identity of the activating user

        Returns:
            ID of the new row, or None if the key was already taken
        """
        insert = self._dialect_insert()
        stmt = (
            insert(ReferralCommission)
            .values(
                id=uuid.uuid4(),
                referrer_id=referrer_id,
                referee_id=referee_id,
                level=level,
                commission_amount=commission_amount,
                trigger_type=trigger_type,
                trigger_user_id=trigger_user_id,
                created_at=utc_now(),
            )
            .on_conflict_do_nothing(index_elements=list(IDEMPOTENCY_KEY))
            .returning(ReferralCommission.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_level_counts(
        self, referrer_id: uuid.UUID
    ) -> dict[int, int]:
        """
        Get commission counts per level in a single query.

        Args:
            referrer_id: Referrer profile ID

        Returns:
            Dict mapping level to count, only levels with records
        """
        stmt = (
            select(
                ReferralCommission.level,
                func.count(ReferralCommission.id).label("count"),
            )
            .where(ReferralCommission.referrer_id == referrer_id)
            .group_by(ReferralCommission.level)
            .order_by(ReferralCommission.level)
        )

        result = await self.session.execute(stmt)
        return {row.level: row.count for row in result.all()}

    async def get_level_totals(
        self, referrer_id: uuid.UUID
    ) -> dict[int, Decimal]:
        """
        Get summed commission amounts per level in a single query.

        Args:
            referrer_id: Referrer profile ID

        Returns:
            Dict mapping level to total amount, only levels with records
        """
        stmt = (
            select(
                ReferralCommission.level,
                func.coalesce(
                    func.sum(ReferralCommission.commission_amount),
                    Decimal("0"),
                ).label("total"),
            )
            .where(ReferralCommission.referrer_id == referrer_id)
            .group_by(ReferralCommission.level)
            .order_by(ReferralCommission.level)
        )

        result = await self.session.execute(stmt)
        return {row.level: Decimal(str(row.total)) for row in result.all()}

    async def get_with_referees(
        self, referrer_id: uuid.UUID
    ) -> list[tuple[ReferralCommission, str | None, str | None]]:
        """
        Get commissions earned by a referrer with referee display fields.

        Ordered by level, then most recent first.

        Args:
            referrer_id: Referrer profile ID

        Returns:
            List of (commission, referee full_name, referee referral_code)
        """
        stmt = (
            select(
                ReferralCommission,
                UserProfile.full_name,
                UserProfile.referral_code,
            )
            .outerjoin(UserProfile, UserProfile.id == ReferralCommission.referee_id)
            .where(ReferralCommission.referrer_id == referrer_id)
            .order_by(
                ReferralCommission.level.asc(),
                ReferralCommission.created_at.desc(),
            )
        )

        result = await self.session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]

