"""
Exception types for the storefront domain.

Configuration outages and broken referral links are recovered locally and
never raised; everything below reaches the caller.
"""

from sqlalchemy.exc import OperationalError, SQLAlchemyError


class StorefrontError(Exception):
    """Base class for domain errors."""
    pass


class RewardConfigError(StorefrontError, ValueError):
    """Raised when an administrative reward update is invalid."""
    pass


class ProfileNotFoundError(StorefrontError):
    """Raised when an auth identity has no storefront profile."""
    pass


class ProfileAlreadyExistsError(StorefrontError):
    """Raised when registering a profile for an auth identity twice."""
    pass


class LedgerDivergenceError(StorefrontError):
    """
    Raised when a commission row was written but the referrer balance
    could not be credited. The enclosing transaction must be rolled back.
    """
    pass


class SubscriptionRequestError(StorefrontError):
    """Raised when a subscription request cannot be created or processed."""
    pass


class WithdrawalRequestError(StorefrontError):
    """Raised when a withdrawal request cannot be created or processed."""
    pass


class InsufficientBalanceError(WithdrawalRequestError):
    """Raised when available_balance does not cover a withdrawal."""
    pass


# Storage failures that a later retry may resolve
RETRYABLE = (
    OperationalError,  # Connection drops, lock/serialization conflicts
    TimeoutError,      # Remote call exceeded request_timeout_seconds
)

# Storage failures surfaced as a failed distribution
STORAGE_ERRORS = (
    SQLAlchemyError,
    TimeoutError,
)


def is_retryable(exc: Exception) -> bool:
    """
    Check if a failed operation may succeed when retried.

    Args:
        exc: Exception to check

    Returns:
        True if exception is transient
    """
    return isinstance(exc, RETRYABLE)
