"""
Referral code helpers.
"""

import secrets

from storefront.config.business_constants import (
    REFERRAL_CODE_ALPHABET,
    REFERRAL_CODE_LENGTH,
    REFERRAL_CODE_PREFIX,
    REGISTRATION_NUMBER_PREFIX,
    REGISTRATION_NUMBER_START,
)


def generate_referral_code() -> str:
    """
    Generate a random referral code, e.g. MTC7QX2A.

    Uniqueness is checked by the caller against the database.
    """
    suffix = "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET)
        for _ in range(REFERRAL_CODE_LENGTH)
    )
    return f"{REFERRAL_CODE_PREFIX}{suffix}"


def normalize_referral_code(code: str | None) -> str | None:
    """Uppercase and strip a user-supplied code; empty input yields None."""
    if not code:
        return None
    code = code.strip().upper()
    return code or None


def build_referral_link(site_url: str, referral_code: str) -> str:
    """Registration link carrying the referral code."""
    return f"{site_url.rstrip('/')}/register?ref={referral_code}"


def next_registration_number(current_max: int | None) -> str:
    """
    Next sequential registration number.

    Args:
        current_max: Highest existing sequence, None if there is none

    Returns:
        Registration number, MAT1001 for the first profile
    """
    base = current_max if current_max is not None else REGISTRATION_NUMBER_START
    return f"{REGISTRATION_NUMBER_PREFIX}{base + 1}"
