"""
Referral chain walker.

Walks referred_by links upward from a user, one level per hop, to at most
MAX_REFERRAL_LEVELS referrers.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from loguru import logger

from storefront.config.business_constants import (
    MAX_REFERRAL_LEVELS,
    UNKNOWN_USER_NAME,
)
from storefront.models.user_profile import UserProfile
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)
from storefront.utils.exceptions import STORAGE_ERRORS


@dataclass(frozen=True)
class ChainLink:
    """One referrer in a user's upline."""

    profile_id: uuid.UUID
    user_id: uuid.UUID
    level: int
    full_name: str
    referral_code: str


class ReferralChainWalker:
    """
    Resolves a user's upline referral chain.

    A missing profile, a missing referrer or a failed lookup ends the chain
    at that point; partial chains are a normal result. The walk re-reads
    storage on every call.
    """

    def __init__(
        self,
        profile_repo: UserProfileRepository,
        max_levels: int = MAX_REFERRAL_LEVELS,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize chain walker.

        Args:
            profile_repo: Profile store
            max_levels: Hop limit
            timeout: Seconds before a single lookup counts as failed
        """
        self.profile_repo = profile_repo
        self.max_levels = max_levels
        self.timeout = timeout

    async def iter_chain(self, user_id: uuid.UUID) -> AsyncIterator[ChainLink]:
        """
        Yield referrers of a user, direct referrer first.

        Args:
            user_id: Auth ID of the user whose upline is walked

        Yields:
            ChainLink per level, levels 1..max_levels
        """
        current_user_id = user_id
        visited: set[uuid.UUID] = set()

        for level in range(1, self.max_levels + 1):
            current = await self._lookup(
                self.profile_repo.get_by_user_id, current_user_id, level
            )
            if current is None or current.referred_by is None:
                return

            visited.add(current.id)
            if current.referred_by in visited:
                logger.error(
                    "Referral loop detected, chain truncated",
                    extra={
                        "user_id": str(user_id),
                        "profile_id": str(current.id),
                        "referred_by": str(current.referred_by),
                        "level": level,
                    },
                )
                return

            referrer = await self._lookup(
                self.profile_repo.get_by_id, current.referred_by, level
            )
            if referrer is None:
                logger.warning(
                    "Referrer not found, chain truncated",
                    extra={
                        "user_id": str(user_id),
                        "missing_profile_id": str(current.referred_by),
                        "level": level,
                    },
                )
                return

            yield ChainLink(
                profile_id=referrer.id,
                user_id=referrer.user_id,
                level=level,
                full_name=referrer.full_name or UNKNOWN_USER_NAME,
                referral_code=referrer.referral_code,
            )
            current_user_id = referrer.user_id

    async def get_chain(self, user_id: uuid.UUID) -> list[ChainLink]:
        """
        Get the full referral chain of a user.

        Args:
            user_id: Auth user ID

        Returns:
            Referrers ordered by level, at most max_levels entries
        """
        chain = [link async for link in self.iter_chain(user_id)]

        logger.debug(
            "Referral chain retrieved",
            extra={"user_id": str(user_id), "chain_length": len(chain)},
        )
        return chain

    async def _lookup(
        self,
        fetch: Callable[[uuid.UUID], Awaitable[UserProfile | None]],
        key: uuid.UUID,
        level: int,
    ) -> UserProfile | None:
        try:
            return await asyncio.wait_for(fetch(key), timeout=self.timeout)
        except STORAGE_ERRORS as e:
            logger.warning(
                "Profile lookup failed, chain truncated",
                extra={"key": str(key), "level": level, "error": str(e)},
            )
            return None
