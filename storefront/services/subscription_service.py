"""
Subscription service.

Manual UPI payment verification: users submit a payment reference, an
admin approves or rejects it, and approval activates the subscription.
Activation is the trigger for referral reward distribution.
"""

import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config.settings import settings
from storefront.models.enums import RequestStatus, SubscriptionStatus
from storefront.models.subscription_request import SubscriptionRequest
from storefront.repositories.subscription_request_repository import (
    SubscriptionRequestRepository,
)
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)
from storefront.services.base_service import BaseService, transaction
from storefront.services.referral import DistributionResult
from storefront.services.referral_service import ReferralService
from storefront.utils.datetime_utils import utc_now
from storefront.utils.exceptions import (
    ProfileNotFoundError,
    SubscriptionRequestError,
)


class SubscriptionService(BaseService):
    """Subscription request and activation service."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize subscription service."""
        super().__init__(session)
        self.request_repo = SubscriptionRequestRepository(session)
        self.profile_repo = UserProfileRepository(session)
        self.referral_service = ReferralService(session)

    @transaction
    async def create_request(
        self,
        user_id: uuid.UUID,
        upi_transaction_id: str,
        amount: Decimal | None = None,
        payment_proof_url: str | None = None,
        payment_proof_filename: str | None = None,
    ) -> SubscriptionRequest:
        """
        Submit a subscription payment for verification.

        Args:
            user_id: Auth user ID
            upi_transaction_id: UPI reference of the payment
            amount: Paid amount, settings.subscription_price by default
            payment_proof_url: Uploaded screenshot URL
            payment_proof_filename: Uploaded screenshot name

        Returns:
            Pending request

        Raises:
            SubscriptionRequestError: On empty transaction ID or
                non-positive amount
        """
        if amount is None:
            amount = settings.subscription_price
        upi_transaction_id = (upi_transaction_id or "").strip()

        if not upi_transaction_id:
            raise SubscriptionRequestError("UPI transaction ID is required")
        if amount <= 0:
            raise SubscriptionRequestError(
                f"Subscription amount must be positive, got {amount}"
            )

        request = await self.request_repo.create(
            user_id=user_id,
            amount=amount,
            upi_transaction_id=upi_transaction_id,
            payment_proof_url=payment_proof_url,
            payment_proof_filename=payment_proof_filename,
            status=RequestStatus.PENDING,
        )

        self.logger.info(
            "Subscription request created",
            extra={
                "user_id": str(user_id),
                "request_id": str(request.id),
                "amount": str(amount),
            },
        )
        return request

    async def get_user_requests(
        self, user_id: uuid.UUID
    ) -> list[SubscriptionRequest]:
        """Get a user's subscription requests, newest first."""
        return await self.request_repo.get_by_user(user_id)

    async def get_pending_requests(self) -> list[SubscriptionRequest]:
        """Get requests waiting for admin verification, oldest first."""
        return await self.request_repo.get_pending()

    async def _get_pending_for_update(
        self, request_id: uuid.UUID
    ) -> SubscriptionRequest:
        request = await self.request_repo.get_for_update(request_id)
        if request is None:
            raise SubscriptionRequestError(
                f"Subscription request {request_id} not found"
            )
        if not request.is_pending:
            raise SubscriptionRequestError(
                f"Subscription request {request_id} is already {request.status}"
            )
        return request

    async def approve_request(
        self,
        request_id: uuid.UUID,
        admin_id: uuid.UUID,
        notes: str | None = None,
    ) -> tuple[SubscriptionRequest, DistributionResult | None]:
        """
        Approve a pending payment and activate the user's subscription.

        Args:
            request_id: Subscription request ID
            admin_id: Approving admin
            notes: Admin notes

        Returns:
            Tuple of (approved request, referral distribution result or
            None when the user has no referrer)

        Raises:
            SubscriptionRequestError: If the request is missing or not pending
            ProfileNotFoundError: If the paying user has no profile

        On failure the session is rolled back, which expires instances
        loaded in it; callers should hold IDs rather than objects across
        a failed call.
        """
        try:
            request = await self._get_pending_for_update(request_id)
            request.status = RequestStatus.APPROVED
            request.admin_notes = notes
            request.processed_at = utc_now()
            request.processed_by = admin_id
            await self.session.flush()
        except Exception:
            await self.rollback()
            raise

        self.logger.info(
            "Subscription request approved",
            extra={
                "request_id": str(request_id),
                "user_id": str(request.user_id),
                "admin_id": str(admin_id),
            },
        )

        # Commits the approval together with the status change
        distribution = await self.activate_subscription(request.user_id)
        return request, distribution

    @transaction
    async def reject_request(
        self,
        request_id: uuid.UUID,
        admin_id: uuid.UUID,
        notes: str | None = None,
    ) -> SubscriptionRequest:
        """
        Reject a pending payment.

        Args:
            request_id: Subscription request ID
            admin_id: Rejecting admin
            notes: Reason shown to the user

        Returns:
            Rejected request

        Raises:
            SubscriptionRequestError: If the request is missing or not pending
        """
        request = await self._get_pending_for_update(request_id)
        request.status = RequestStatus.REJECTED
        request.admin_notes = notes
        request.processed_at = utc_now()
        request.processed_by = admin_id

        self.logger.info(
            "Subscription request rejected",
            extra={"request_id": str(request_id), "admin_id": str(admin_id)},
        )
        return request

    async def activate_subscription(
        self, user_id: uuid.UUID
    ) -> DistributionResult | None:
        """
        Activate a subscription and distribute referral rewards.

        Activation is committed before distribution starts; a failed
        distribution is logged and leaves the subscription active. Calling
        this for an already active user distributes again, which only
        fills in levels missing from the ledger.

        Args:
            user_id: Auth user ID

        Returns:
            Distribution result, None if the user has no referrer

        Raises:
            ProfileNotFoundError: If the user has no profile
        """
        updated = await self.profile_repo.set_subscription_status(
            user_id, SubscriptionStatus.ACTIVE
        )
        if not updated:
            await self.rollback()
            raise ProfileNotFoundError(f"Profile for user {user_id} not found")
        await self.commit()

        self.logger.info(
            "Subscription activated", extra={"user_id": str(user_id)}
        )

        profile = await self.profile_repo.get_by_user_id(user_id)
        if profile is None or profile.referred_by is None:
            return None

        result = await self.referral_service.process_subscription_rewards(
            user_id
        )
        if not result.success:
            self.logger.error(
                "Referral distribution failed after activation, retry with "
                "scripts/retry_commissions.py",
                extra={
                    "user_id": str(user_id),
                    "error": result.error_message,
                },
            )
        return result

    @transaction
    async def deactivate_subscription(self, user_id: uuid.UUID) -> None:
        """
        Deactivate a subscription.

        Raises:
            ProfileNotFoundError: If the user has no profile
        """
        updated = await self.profile_repo.set_subscription_status(
            user_id, SubscriptionStatus.INACTIVE
        )
        if not updated:
            raise ProfileNotFoundError(f"Profile for user {user_id} not found")

        self.logger.info(
            "Subscription deactivated", extra={"user_id": str(user_id)}
        )

    async def check_status(self, user_id: uuid.UUID) -> str:
        """
        Get subscription status.

        Returns:
            "active" or "inactive"; "inactive" for unknown users
        """
        status = await self.profile_repo.get_subscription_status(user_id)
        return status or SubscriptionStatus.INACTIVE
