"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- In-memory referral tree served by a mocked profile repository
- Mocked commission ledger
"""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest


class ProfileTree:
    """Profiles keyed by auth ID and profile ID, linked by referred_by."""

    def __init__(self):
        self.by_user_id = {}
        self.by_id = {}

    def add(self, name, referrer=None):
        profile = SimpleNamespace(
            id=uuid.uuid4(),
            user_id=uuid.uuid4(),
            full_name=name,
            referral_code=f"MTC{name.upper()[:5]}",
            referred_by=referrer.id if referrer else None,
        )
        self.by_user_id[profile.user_id] = profile
        self.by_id[profile.id] = profile
        return profile

    def chain(self, length):
        """
        Build root <- p1 <- ... <- p<length>.

        Returns:
            Profiles from root to the bottom-most user
        """
        profiles = [self.add("root")]
        for i in range(1, length + 1):
            profiles.append(self.add(f"p{i}", referrer=profiles[-1]))
        return profiles


@pytest.fixture
def tree():
    """Empty profile tree."""
    return ProfileTree()


@pytest.fixture
def profile_repo(tree):
    """
    Mock UserProfileRepository reading from the tree.

    Returns:
        MagicMock: Repository with async lookups and balance updates
    """
    repo = MagicMock()
    repo.get_by_user_id = AsyncMock(
        side_effect=lambda user_id: tree.by_user_id.get(user_id)
    )
    repo.get_by_id = AsyncMock(
        side_effect=lambda profile_id: tree.by_id.get(profile_id)
    )
    repo.increment_balance = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def commission_repo():
    """
    Mock ReferralCommissionRepository whose inserts always succeed.

    Returns:
        MagicMock: Repository returning a fresh ID per insert
    """
    repo = MagicMock()
    repo.insert_if_absent = AsyncMock(side_effect=lambda **kwargs: uuid.uuid4())
    return repo
