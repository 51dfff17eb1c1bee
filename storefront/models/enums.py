"""
Status constants shared by models and services.
"""


class SubscriptionStatus:
    """Profile subscription status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class RequestStatus:
    """Status of admin-processed requests (subscriptions, withdrawals)."""

    PENDING = "pending"  # Waiting for admin verification
    APPROVED = "approved"
    REJECTED = "rejected"


class CommissionTrigger:
    """Events that produce referral commissions."""

    SUBSCRIPTION_ACTIVATION = "subscription_activation"
