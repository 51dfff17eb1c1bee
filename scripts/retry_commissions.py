#!/usr/bin/env python3
"""
Retry Referral Commissions Script.

Re-runs commission distribution for subscribed users who have a referrer.
Distribution is idempotent: levels already in the ledger are skipped, so
this only fills in rewards lost to failed or truncated earlier runs.
"""

import argparse
import asyncio
import sys
import uuid
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from storefront.config.settings import settings
from storefront.database import create_engine, create_session_maker
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)
from storefront.services.referral_service import ReferralService
from storefront.utils.logging import setup_logging


async def retry_commissions(
    user_ids: list[uuid.UUID] | None = None, dry_run: bool = False
) -> int:
    """
    Re-run distribution for the given users, or all eligible users.

    Args:
        user_ids: Auth user IDs; all active referred users when omitted
        dry_run: Only print each user's chain and expected rewards

    Returns:
        Number of users whose distribution failed
    """
    engine = create_engine()
    session_maker = create_session_maker(engine)

    if not user_ids:
        async with session_maker() as session:
            repo = UserProfileRepository(session)
            user_ids = await repo.get_active_referred_user_ids()

    logger.info(f"Processing {len(user_ids)} users (dry_run={dry_run})")

    failed = 0
    credited_levels = 0
    credited_total = Decimal("0")

    for user_id in user_ids:
        # One session per user keeps a failure from affecting the others
        async with session_maker() as session:
            service = ReferralService(session)

            if dry_run:
                config = await service.get_reward_config()
                chain = await service.get_chain(user_id)
                for link in chain:
                    logger.info(
                        f"  {user_id} L{link.level} -> {link.full_name} "
                        f"({link.referral_code}): {config.amount_for(link.level)}"
                    )
                continue

            result = await service.process_subscription_rewards(user_id)
            if not result.success:
                failed += 1
                logger.error(f"{user_id}: {result.error_message}")
                continue

            credited_levels += result.levels_processed
            credited_total += result.total_distributed
            if result.levels_processed:
                logger.info(
                    f"{user_id}: back-filled {result.levels_processed} levels, "
                    f"{result.total_distributed}"
                )

    await engine.dispose()

    logger.info("=" * 50)
    logger.info(f"Users processed: {len(user_ids)}")
    logger.info(f"Levels credited: {credited_levels}")
    logger.info(f"Amount credited: {credited_total}")
    logger.info(f"Failures: {failed}")
    return failed


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Retry referral commission distribution"
    )
    parser.add_argument(
        "--user-id",
        action="append",
        type=uuid.UUID,
        dest="user_ids",
        help="Auth user ID to process (repeatable); default: all active referred users"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show chains and expected rewards without writing"
    )
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_file)
    failed = asyncio.run(retry_commissions(args.user_ids, args.dry_run))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
