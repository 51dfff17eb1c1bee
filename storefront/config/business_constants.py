"""
Business logic constants for the storefront.

Central location for referral program rules and constants used across the
application. Imported by services and scripts without circular dependencies.
"""

from decimal import Decimal


# Referral program depth (level 1 = direct referrer)
MAX_REFERRAL_LEVELS = 7

# Fixed reward per level in rupees, applied when no configuration is stored
DEFAULT_REFERRAL_REWARDS: dict[int, Decimal] = {
    1: Decimal("200"),  # Direct referrer
    2: Decimal("15"),
    3: Decimal("11"),
    4: Decimal("9"),
    5: Decimal("7"),
    6: Decimal("5"),
    7: Decimal("3"),
}

# system_settings key holding the reward table
REFERRAL_REWARD_CONFIG_KEY = "referral_reward_config"
REFERRAL_REWARD_CONFIG_DESCRIPTION = "7-level fixed reward structure amounts in rupees"

# Commission trigger types
TRIGGER_SUBSCRIPTION_ACTIVATION = "subscription_activation"
TRIGGER_TYPES = (TRIGGER_SUBSCRIPTION_ACTIVATION,)

# Referral codes: prefix + random suffix, e.g. MTC7QX2A
REFERRAL_CODE_PREFIX = "MTC"
REFERRAL_CODE_LENGTH = 5
REFERRAL_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
REFERRAL_CODE_MAX_ATTEMPTS = 10

# Registration numbers: MAT1001, MAT1002, ...
REGISTRATION_NUMBER_PREFIX = "MAT"
REGISTRATION_NUMBER_START = 1000

# Money precision (DECIMAL(10, 2))
MONEY_QUANT = Decimal("0.01")

# Display fallback for profiles without a name
UNKNOWN_USER_NAME = "Unknown User"
