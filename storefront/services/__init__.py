"""
Services.

Business logic layer.
"""

from storefront.services.base_service import BaseService, transaction
from storefront.services.referral_service import ReferralService
from storefront.services.subscription_service import SubscriptionService
from storefront.services.user_profile_service import (
    ReferralStats,
    UserProfileService,
)
from storefront.services.withdrawal_service import WithdrawalService


__all__ = [
    "BaseService",
    "ReferralService",
    "ReferralStats",
    "SubscriptionService",
    "UserProfileService",
    "WithdrawalService",
    "transaction",
]
