"""
Fixtures for integration tests.

Each test gets a fresh SQLite database file so that ON CONFLICT inserts,
atomic balance updates and concurrent sessions run as real SQL.
"""

import itertools
import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from storefront.models import Base, UserProfile
from storefront.repositories.user_profile_repository import (
    UserProfileRepository,
)


_codes = itertools.count(1)


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Async engine on a temporary database file with all tables."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory; each call opens an independent session."""
    return async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def session(session_maker):
    """Session used by the code under test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_profile(session_maker):
    """
    Factory creating committed profiles.

    Usage:
        alice = await make_profile("Alice")
        bob = await make_profile("Bob", referrer=alice)
    """
    async def _make(full_name=None, referrer=None, subscription_status="inactive"):
        async with session_maker() as s:
            profile = await UserProfileRepository(s).create(
                user_id=uuid.uuid4(),
                full_name=full_name,
                referral_code=f"MTC{next(_codes):05d}",
                referred_by=referrer.id if referrer else None,
                subscription_status=subscription_status,
            )
            await s.commit()
            return profile

    return _make


@pytest.fixture
def make_chain(make_profile):
    """
    Factory creating root <- u1 <- ... <- u<length>.

    Returns:
        Profiles from root to the bottom-most user
    """
    async def _make(length):
        profiles = [await make_profile("root")]
        for i in range(1, length + 1):
            profiles.append(await make_profile(f"user{i}", referrer=profiles[-1]))
        return profiles

    return _make


@pytest.fixture
def fetch_profile(session_maker):
    """Read a profile's current row through a fresh session."""
    async def _fetch(profile: UserProfile) -> UserProfile:
        async with session_maker() as s:
            return await s.get(UserProfile, profile.id)

    return _fetch
