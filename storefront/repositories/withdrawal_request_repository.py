"""
Withdrawal request repository.

Data access layer for WithdrawalRequest model.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.withdrawal_request import WithdrawalRequest
from storefront.repositories.base import BaseRepository


class WithdrawalRequestRepository(BaseRepository[WithdrawalRequest]):
    """Withdrawal request repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal request repository."""
        super().__init__(WithdrawalRequest, session)

    async def get_by_user(
        self, user_id: uuid.UUID
    ) -> list[WithdrawalRequest]:
        """
        Get a user's withdrawal requests, newest first.

        Args:
            user_id: Auth user ID

        Returns:
            List of requests
        """
        stmt = (
            select(WithdrawalRequest)
            .where(WithdrawalRequest.user_id == user_id)
            .order_by(WithdrawalRequest.requested_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
