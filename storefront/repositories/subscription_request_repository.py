"""
Subscription request repository.

Data access layer for SubscriptionRequest model.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.enums import RequestStatus
from storefront.models.subscription_request import SubscriptionRequest
from storefront.repositories.base import BaseRepository


class SubscriptionRequestRepository(BaseRepository[SubscriptionRequest]):
    """Subscription request repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize subscription request repository."""
        super().__init__(SubscriptionRequest, session)

    async def get_by_user(
        self, user_id: uuid.UUID
    ) -> list[SubscriptionRequest]:
        """
        Get a user's subscription requests, newest first.

        Args:
            user_id: Auth user ID

        Returns:
            List of requests
        """
        stmt = (
            select(SubscriptionRequest)
            .where(SubscriptionRequest.user_id == user_id)
            .order_by(SubscriptionRequest.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pending(self) -> list[SubscriptionRequest]:
        """
        Get requests awaiting verification, oldest first.

        Returns:
            List of pending requests
        """
        stmt = (
            select(SubscriptionRequest)
            .where(SubscriptionRequest.status == RequestStatus.PENDING)
            .order_by(SubscriptionRequest.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
