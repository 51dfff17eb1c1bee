"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from storefront.models.base import Base
from storefront.models.enums import (
    CommissionTrigger,
    RequestStatus,
    SubscriptionStatus,
)
from storefront.models.referral_commission import ReferralCommission
from storefront.models.subscription_request import SubscriptionRequest
from storefront.models.system_setting import SystemSetting
from storefront.models.user_profile import UserProfile
from storefront.models.withdrawal_request import WithdrawalRequest

__all__ = [
    # Base
    "Base",
    # Status constants
    "CommissionTrigger",
    "RequestStatus",
    "SubscriptionStatus",
    # Core Models
    "UserProfile",
    "ReferralCommission",
    # System Models
    "SystemSetting",
    # Payment verification
    "SubscriptionRequest",
    "WithdrawalRequest",
]
