"""Tests for the ReferralService facade."""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from storefront.config.settings import settings
from storefront.services.referral import DistributionResult
from storefront.services.referral_service import ReferralService


class TestReferralService:
    """Test ReferralService wiring and error containment."""

    def test_components_share_session_and_repositories(self, mock_session):
        """Distributor and queries reuse the facade's repositories."""
        service = ReferralService(mock_session)

        assert service.distributor.session is mock_session
        assert service.distributor.profile_repo is service.profile_repo
        assert service.distributor.chain_walker is service.chain_walker
        assert service.queries.commission_repo is service.commission_repo

    def test_default_timeout_from_settings(self, mock_session):
        """Storage timeout defaults to request_timeout_seconds."""
        service = ReferralService(mock_session)

        assert service.chain_walker.timeout == settings.request_timeout_seconds
        assert service.distributor.timeout == settings.request_timeout_seconds

    @pytest.mark.asyncio
    async def test_process_subscription_rewards_returns_result(
        self, mock_session
    ):
        """Distributor result is passed through."""
        service = ReferralService(mock_session)
        expected = DistributionResult(
            success=True,
            total_distributed=Decimal("215"),
            levels_processed=2,
        )
        service.distributor.distribute = AsyncMock(return_value=expected)
        user_id = uuid.uuid4()

        result = await service.process_subscription_rewards(user_id)

        assert result is expected
        service.distributor.distribute.assert_awaited_once_with(
            user_id, "subscription_activation"
        )

    @pytest.mark.asyncio
    async def test_process_subscription_rewards_never_raises(
        self, mock_session
    ):
        """Unexpected errors become a failed result."""
        service = ReferralService(mock_session)
        service.distributor.distribute = AsyncMock(
            side_effect=RuntimeError("boom")
        )

        result = await service.process_subscription_rewards(uuid.uuid4())

        assert result.success is False
        assert "boom" in result.error_message
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_process_subscription_rewards_error_with_braces(
        self, mock_session
    ):
        """Error text containing braces is still contained."""
        service = ReferralService(mock_session)
        service.distributor.distribute = AsyncMock(
            side_effect=RuntimeError("unexpected {user_id}")
        )

        result = await service.process_subscription_rewards(uuid.uuid4())

        assert result.success is False
        assert "unexpected {user_id}" in result.error_message
