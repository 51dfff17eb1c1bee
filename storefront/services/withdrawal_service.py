"""
Withdrawal service.

Referral earnings payouts over UPI. The requested amount is reserved from
available_balance when the request is created, paid out on approval and
refunded on rejection.
"""

import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.enums import RequestStatus
from storefront.models.withdrawal_request import WithdrawalRequest
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)
from storefront.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from storefront.services.base_service import BaseService, transaction
from storefront.utils.datetime_utils import utc_now
from storefront.utils.exceptions import (
    InsufficientBalanceError,
    LedgerDivergenceError,
    ProfileNotFoundError,
    WithdrawalRequestError,
)


class WithdrawalService(BaseService):
    """Withdrawal request service."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal service."""
        super().__init__(session)
        self.withdrawal_repo = WithdrawalRequestRepository(session)
        self.profile_repo = UserProfileRepository(session)

    @transaction
    async def create_request(
        self, user_id: uuid.UUID, amount: Decimal, upi_id: str
    ) -> WithdrawalRequest:
        """
        Request a payout and reserve the amount.

        Args:
            user_id: Auth user ID
            amount: Amount to withdraw
            upi_id: Destination UPI ID

        Returns:
            Pending request

        Raises:
            WithdrawalRequestError: On invalid amount or UPI ID
            ProfileNotFoundError: If the user has no profile
            InsufficientBalanceError: If available_balance is too low
        """
        amount = Decimal(str(amount))
        upi_id = (upi_id or "").strip()

        if amount <= 0:
            raise WithdrawalRequestError(
                f"Withdrawal amount must be positive, got {amount}"
            )
        if not upi_id:
            raise WithdrawalRequestError("UPI ID is required")

        if not await self.profile_repo.exists(user_id=user_id):
            raise ProfileNotFoundError(f"Profile for user {user_id} not found")

        if not await self.profile_repo.reserve_balance(user_id, amount):
            raise InsufficientBalanceError(
                f"Insufficient balance for withdrawal of {amount}"
            )

        request = await self.withdrawal_repo.create(
            user_id=user_id,
            amount=amount,
            upi_id=upi_id,
            status=RequestStatus.PENDING,
        )

        self.logger.info(
            "Withdrawal request created",
            extra={
                "user_id": str(user_id),
                "request_id": str(request.id),
                "amount": str(amount),
            },
        )
        return request

    async def get_user_requests(
        self, user_id: uuid.UUID
    ) -> list[WithdrawalRequest]:
        """Get a user's withdrawal requests, newest first."""
        return await self.withdrawal_repo.get_by_user(user_id)

    async def _get_pending_for_update(
        self, request_id: uuid.UUID
    ) -> WithdrawalRequest:
        request = await self.withdrawal_repo.get_for_update(request_id)
        if request is None:
            raise WithdrawalRequestError(
                f"Withdrawal request {request_id} not found"
            )
        if not request.is_pending:
            raise WithdrawalRequestError(
                f"Withdrawal request {request_id} is already {request.status}"
            )
        return request

    def _mark_processed(
        self,
        request: WithdrawalRequest,
        status: str,
        admin_id: uuid.UUID,
        notes: str | None,
    ) -> None:
        request.status = status
        request.admin_notes = notes
        request.processed_at = utc_now()
        request.processed_by = admin_id

    @transaction
    async def approve_request(
        self,
        request_id: uuid.UUID,
        admin_id: uuid.UUID,
        notes: str | None = None,
    ) -> WithdrawalRequest:
        """
        Mark a withdrawal as paid out.

        Raises:
            WithdrawalRequestError: If the request is missing or not pending
        """
        request = await self._get_pending_for_update(request_id)
        self._mark_processed(request, RequestStatus.APPROVED, admin_id, notes)

        if not await self.profile_repo.add_withdrawn(
            request.user_id, request.amount
        ):
            raise LedgerDivergenceError(
                f"Profile of user {request.user_id} missing for approved "
                f"withdrawal {request_id}"
            )

        self.logger.info(
            "Withdrawal approved",
            extra={
                "request_id": str(request_id),
                "user_id": str(request.user_id),
                "amount": str(request.amount),
                "admin_id": str(admin_id),
            },
        )
        return request

    @transaction
    async def reject_request(
        self,
        request_id: uuid.UUID,
        admin_id: uuid.UUID,
        notes: str | None = None,
    ) -> WithdrawalRequest:
        """
        Reject a withdrawal and refund the reserved amount.

        Raises:
            WithdrawalRequestError: If the request is missing or not pending
        """
        request = await self._get_pending_for_update(request_id)
        self._mark_processed(request, RequestStatus.REJECTED, admin_id, notes)

        if not await self.profile_repo.refund_balance(
            request.user_id, request.amount
        ):
            raise LedgerDivergenceError(
                f"Profile of user {request.user_id} missing for refund of "
                f"withdrawal {request_id}"
            )

        self.logger.info(
            "Withdrawal rejected, amount refunded",
            extra={
                "request_id": str(request_id),
                "user_id": str(request.user_id),
                "amount": str(request.amount),
                "admin_id": str(admin_id),
            },
        )
        return request
