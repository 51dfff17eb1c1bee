"""
Integration tests for referral commission distribution.

Runs the distributor, walker and query layer against SQLite, including
the ON CONFLICT ledger insert and concurrent invocations.
"""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from storefront.models import ReferralCommission, UserProfile
from storefront.services.referral_service import ReferralService


async def ledger_count(session_maker) -> int:
    async with session_maker() as s:
        return await s.scalar(select(func.count(ReferralCommission.id)))


async def balance_sum(session_maker) -> Decimal:
    async with session_maker() as s:
        total = await s.scalar(
            select(func.coalesce(func.sum(UserProfile.total_earnings), 0))
        )
        return Decimal(str(total))


@pytest.mark.integration
class TestCommissionDistribution:
    """Distribution against a real database."""

    @pytest.mark.asyncio
    async def test_three_user_chain(
        self, session, make_profile, fetch_profile
    ):
        """A <- B <- C: C activates, B earns 200 and A earns 15."""
        a = await make_profile("Alice")
        b = await make_profile("Bob", referrer=a)
        c = await make_profile("Carol", referrer=b)
        service = ReferralService(session)

        result = await service.process_subscription_rewards(c.user_id)

        assert result.success is True
        assert result.total_distributed == Decimal("215")
        assert result.levels_processed == 2

        assert (await fetch_profile(b)).available_balance == Decimal("200")
        assert (await fetch_profile(b)).total_earnings == Decimal("200")
        assert (await fetch_profile(a)).available_balance == Decimal("15")
        assert (await fetch_profile(c)).available_balance == Decimal("0")

        assert await service.count_by_level(b.user_id) == {1: 1}
        assert await service.count_by_level(a.user_id) == {2: 1}
        assert await service.count_by_level(c.user_id) == {}

    @pytest.mark.asyncio
    async def test_second_distribution_credits_nothing(
        self, session, make_profile, fetch_profile, session_maker
    ):
        """Repeating the same activation changes no balance or ledger row."""
        a = await make_profile("Alice")
        b = await make_profile("Bob", referrer=a)
        c = await make_profile("Carol", referrer=b)
        service = ReferralService(session)

        await service.process_subscription_rewards(c.user_id)
        again = await service.process_subscription_rewards(c.user_id)

        assert again.success is True
        assert again.total_distributed == Decimal("0")
        assert again.levels_processed == 0
        assert await ledger_count(session_maker) == 2
        assert (await fetch_profile(b)).available_balance == Decimal("200")
        assert (await fetch_profile(a)).available_balance == Decimal("15")

    @pytest.mark.asyncio
    async def test_ledger_matches_balances(
        self, session, make_chain, session_maker
    ):
        """Sum of credited balances equals sum of ledger amounts."""
        profiles = await make_chain(4)
        service = ReferralService(session)

        result = await service.process_subscription_rewards(
            profiles[-1].user_id
        )

        async with session_maker() as s:
            ledger_total = await s.scalar(
                select(func.sum(ReferralCommission.commission_amount))
            )
        assert Decimal(str(ledger_total)) == result.total_distributed
        assert await balance_sum(session_maker) == result.total_distributed
        assert result.total_distributed == Decimal("235")

    @pytest.mark.asyncio
    async def test_only_seven_levels_paid(
        self, session, make_chain, fetch_profile
    ):
        """With eight uplines the eighth earns nothing."""
        profiles = await make_chain(8)
        service = ReferralService(session)

        result = await service.process_subscription_rewards(
            profiles[-1].user_id
        )

        assert result.levels_processed == 7
        assert result.total_distributed == Decimal("250")
        assert (await fetch_profile(profiles[0])).total_earnings == Decimal("0")
        assert (await fetch_profile(profiles[1])).total_earnings == Decimal("3")
        assert await service.count_by_level(profiles[1].user_id) == {7: 1}

    @pytest.mark.asyncio
    async def test_user_without_referrer(
        self, session, make_profile, session_maker
    ):
        """No upline: success, nothing written."""
        a = await make_profile("Alice")

        result = await ReferralService(session).process_subscription_rewards(
            a.user_id
        )

        assert result.success is True
        assert result.levels_processed == 0
        assert await ledger_count(session_maker) == 0

    @pytest.mark.asyncio
    async def test_configured_amounts_applied(
        self, session, make_profile, fetch_profile, session_maker
    ):
        """Stored config overrides defaults; zero levels are still recorded."""
        a = await make_profile("Alice")
        b = await make_profile("Bob", referrer=a)
        c = await make_profile("Carol", referrer=b)

        async with session_maker() as admin_session:
            await ReferralService(admin_session).update_reward_config(
                {"level1": "250", 2: 0}
            )

        result = await ReferralService(session).process_subscription_rewards(
            c.user_id
        )

        assert result.total_distributed == Decimal("250")
        assert result.levels_processed == 2
        assert (await fetch_profile(b)).available_balance == Decimal("250")
        assert (await fetch_profile(a)).available_balance == Decimal("0")
        assert await ledger_count(session_maker) == 2
        assert await ReferralService(session).count_by_level(a.user_id) == {2: 1}
        assert await ReferralService(session).totals_by_level(a.user_id) == {
            2: Decimal("0")
        }

    @pytest.mark.asyncio
    async def test_reward_config_persisted(self, session_maker):
        """Updated config is visible to new sessions."""
        async with session_maker() as s:
            await ReferralService(s).update_reward_config({3: "12.5"})

        async with session_maker() as s:
            config = await ReferralService(s).get_reward_config()

        assert config.amount_for(3) == Decimal("12.50")
        assert config.amount_for(1) == Decimal("200")

    @pytest.mark.asyncio
    async def test_concurrent_distribution_credits_once(
        self, make_chain, session_maker, fetch_profile
    ):
        """Concurrent calls for one activation credit each level once."""
        profiles = await make_chain(3)
        bottom = profiles[-1]

        async def distribute():
            async with session_maker() as s:
                return await ReferralService(s).process_subscription_rewards(
                    bottom.user_id
                )

        results = await asyncio.gather(*(distribute() for _ in range(4)))
        # A caller that lost a lock race can simply be retried
        final = await distribute()

        assert final.success is True
        credited = sum(r.levels_processed for r in (*results, final) if r.success)
        assert credited == 3
        assert await ledger_count(session_maker) == 3
        assert (await fetch_profile(profiles[2])).available_balance == Decimal("200")
        assert (await fetch_profile(profiles[1])).available_balance == Decimal("15")
        assert (await fetch_profile(profiles[0])).available_balance == Decimal("11")


@pytest.mark.integration
class TestCommissionQueries:
    """Per-level commission views."""

    @pytest.mark.asyncio
    async def test_details_most_recent_first(self, session, make_profile):
        """Referees are listed newest first with display fields."""
        bob = await make_profile("Bob")
        carol = await make_profile(None, referrer=bob)
        dave = await make_profile("Dave", referrer=bob)
        service = ReferralService(session)

        await service.process_subscription_rewards(carol.user_id)
        await service.process_subscription_rewards(dave.user_id)

        details = await service.details_by_level(bob.user_id)

        assert list(details) == [1]
        assert [d.referee_id for d in details[1]] == [dave.id, carol.id]
        assert details[1][0].referee_name == "Dave"
        assert details[1][0].referee_referral_code == dave.referral_code
        assert details[1][1].referee_name == "Unknown User"
        assert details[1][0].amount == Decimal("200")
        assert details[1][0].trigger_type == "subscription_activation"

    @pytest.mark.asyncio
    async def test_totals_by_level(self, session, make_profile):
        """Totals sum all commissions of a level."""
        alice = await make_profile("Alice")
        bob = await make_profile("Bob", referrer=alice)
        carol = await make_profile("Carol", referrer=bob)
        dave = await make_profile("Dave", referrer=bob)
        service = ReferralService(session)

        await service.process_subscription_rewards(carol.user_id)
        await service.process_subscription_rewards(dave.user_id)

        assert await service.totals_by_level(alice.user_id) == {2: Decimal("30")}
        assert await service.totals_by_level(bob.user_id) == {1: Decimal("400")}
        assert await service.count_by_level(alice.user_id) == {2: 2}

    @pytest.mark.asyncio
    async def test_unknown_user_has_no_commissions(self, session, user_id):
        """Unknown users get empty views."""
        service = ReferralService(session)

        assert await service.count_by_level(user_id) == {}
        assert await service.totals_by_level(user_id) == {}
        assert await service.details_by_level(user_id) == {}

    @pytest.mark.asyncio
    async def test_get_chain(self, session, make_chain):
        """Chain exposes referrer identity and display fields."""
        profiles = await make_chain(2)

        chain = await ReferralService(session).get_chain(profiles[-1].user_id)

        assert [link.user_id for link in chain] == [
            profiles[1].user_id,
            profiles[0].user_id,
        ]
        assert chain[1].full_name == "root"
