#!/usr/bin/env python3
"""Initialize database tables and seed the default referral reward table."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from storefront.config.business_constants import (
    REFERRAL_REWARD_CONFIG_DESCRIPTION,
    REFERRAL_REWARD_CONFIG_KEY,
)
from storefront.config.settings import settings
from storefront.database import create_engine, create_session_maker
from storefront.models import Base
from storefront.repositories.system_setting_repository import (
    SystemSettingRepository,
)
from storefront.services.referral import RewardConfig
from storefront.utils.logging import setup_logging


async def init_database() -> None:
    """Create all database tables."""
    logger.info("Connecting to database...")
    engine = create_engine()

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(
            Base.metadata.create_all,
            checkfirst=True
        )

    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        repo = SystemSettingRepository(session)
        if await repo.get_value(REFERRAL_REWARD_CONFIG_KEY) is None:
            await repo.upsert_value(
                REFERRAL_REWARD_CONFIG_KEY,
                RewardConfig.default().to_storage(),
                REFERRAL_REWARD_CONFIG_DESCRIPTION,
            )
            await session.commit()
            logger.info("Default referral reward config seeded")

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    setup_logging(settings.log_level, log_file=None)
    asyncio.run(init_database())
