"""
Tests for the referral chain walker.

Covers:
- Level numbering along referred_by links
- 7-level bound
- Truncation on missing profiles, failed lookups and loops
"""

import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from storefront.services.referral.chain_walker import ReferralChainWalker


class TestReferralChainWalker:
    """Test upline resolution."""

    @pytest.mark.asyncio
    async def test_direct_referrer_is_level_one(self, tree, profile_repo):
        """A <- B <- C: C's chain is [B (1), A (2)]."""
        a = tree.add("alice")
        b = tree.add("bob", referrer=a)
        c = tree.add("carol", referrer=b)

        chain = await ReferralChainWalker(profile_repo).get_chain(c.user_id)

        assert [(link.profile_id, link.level) for link in chain] == [
            (b.id, 1),
            (a.id, 2),
        ]
        assert chain[0].user_id == b.user_id
        assert chain[0].full_name == "bob"
        assert chain[0].referral_code == b.referral_code

    @pytest.mark.asyncio
    async def test_no_referrer(self, tree, profile_repo):
        """A user without referred_by has an empty chain."""
        a = tree.add("alice")

        chain = await ReferralChainWalker(profile_repo).get_chain(a.user_id)

        assert chain == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, profile_repo):
        """A user without a profile has an empty chain."""
        chain = await ReferralChainWalker(profile_repo).get_chain(uuid.uuid4())

        assert chain == []

    @pytest.mark.asyncio
    async def test_chain_limited_to_seven_levels(self, tree, profile_repo):
        """Eight uplines: only the nearest seven are returned."""
        profiles = tree.chain(8)
        bottom = profiles[-1]

        chain = await ReferralChainWalker(profile_repo).get_chain(
            bottom.user_id
        )

        assert [link.level for link in chain] == [1, 2, 3, 4, 5, 6, 7]
        assert chain[-1].profile_id == profiles[1].id
        assert profiles[0].id not in {link.profile_id for link in chain}

    @pytest.mark.asyncio
    async def test_custom_max_levels(self, tree, profile_repo):
        """Hop limit is configurable."""
        profiles = tree.chain(5)

        chain = await ReferralChainWalker(profile_repo, max_levels=2).get_chain(
            profiles[-1].user_id
        )

        assert len(chain) == 2

    @pytest.mark.asyncio
    async def test_missing_referrer_truncates(self, tree, profile_repo):
        """Broken link at hop 4 leaves levels 1-3."""
        profiles = tree.chain(5)
        # p2's referrer (p1) disappears
        del tree.by_id[profiles[1].id]
        del tree.by_user_id[profiles[1].user_id]

        chain = await ReferralChainWalker(profile_repo).get_chain(
            profiles[-1].user_id
        )

        assert [link.profile_id for link in chain] == [
            profiles[4].id,
            profiles[3].id,
            profiles[2].id,
        ]

    @pytest.mark.asyncio
    async def test_lookup_error_truncates(self, tree, profile_repo):
        """A storage error ends the walk instead of propagating."""
        profiles = tree.chain(3)
        fail_on = profiles[1].id

        def get_by_id(profile_id):
            if profile_id == fail_on:
                raise OperationalError("SELECT", {}, Exception("timeout"))
            return tree.by_id.get(profile_id)

        profile_repo.get_by_id = AsyncMock(side_effect=get_by_id)

        chain = await ReferralChainWalker(profile_repo).get_chain(
            profiles[-1].user_id
        )

        assert [link.level for link in chain] == [1]

    @pytest.mark.asyncio
    async def test_lookup_error_with_parameters_truncates(
        self, tree, profile_repo
    ):
        """Error text containing braces does not escape the walker."""
        profiles = tree.chain(2)
        profile_repo.get_by_id = AsyncMock(
            side_effect=OperationalError(
                "SELECT", {"id_1": "abc"}, Exception("lock {timeout}")
            )
        )

        chain = await ReferralChainWalker(profile_repo).get_chain(
            profiles[-1].user_id
        )

        assert chain == []

    @pytest.mark.asyncio
    async def test_slow_lookup_truncates(self, tree, profile_repo):
        """A lookup exceeding the timeout ends the walk."""
        profiles = tree.chain(2)

        async def slow_get_by_id(profile_id):
            await asyncio.sleep(1)
            return tree.by_id.get(profile_id)

        profile_repo.get_by_id = AsyncMock(side_effect=slow_get_by_id)

        chain = await ReferralChainWalker(
            profile_repo, timeout=0.05
        ).get_chain(profiles[-1].user_id)

        assert chain == []

    @pytest.mark.asyncio
    async def test_referral_loop_is_cut(self, tree, profile_repo):
        """x <- y <- x terminates instead of cycling."""
        x = tree.add("xavier")
        y = tree.add("yara", referrer=x)
        x.referred_by = y.id

        chain = await ReferralChainWalker(profile_repo).get_chain(x.user_id)

        assert [link.profile_id for link in chain] == [y.id]

    @pytest.mark.asyncio
    async def test_self_referral_is_cut(self, tree, profile_repo):
        """A profile referring itself has no chain."""
        x = tree.add("xavier")
        x.referred_by = x.id

        chain = await ReferralChainWalker(profile_repo).get_chain(x.user_id)

        assert chain == []

    @pytest.mark.asyncio
    async def test_iter_chain_stops_early(self, tree, profile_repo):
        """Consumers can stop iterating after the first link."""
        profiles = tree.chain(4)
        walker = ReferralChainWalker(profile_repo)

        async for link in walker.iter_chain(profiles[-1].user_id):
            first = link
            break

        assert first.level == 1
        assert profile_repo.get_by_id.await_count == 1
