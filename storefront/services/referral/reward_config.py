"""
Referral reward configuration.

The per-level reward table is read fresh for every distribution and passed
along explicitly. A missing or unreadable stored table never blocks
distribution: the built-in defaults are used instead.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config.business_constants import (
    DEFAULT_REFERRAL_REWARDS,
    MAX_REFERRAL_LEVELS,
    MONEY_QUANT,
    REFERRAL_REWARD_CONFIG_DESCRIPTION,
    REFERRAL_REWARD_CONFIG_KEY,
)
from storefront.repositories.system_setting_repository import (
    SystemSettingRepository,
)
from storefront.utils.exceptions import RewardConfigError


def _parse_level(key: Any) -> int:
    """Accept 3, "3" or "level3"; reject anything outside 1..MAX_REFERRAL_LEVELS."""
    raw = key
    if isinstance(key, str):
        raw = key.strip().lower().removeprefix("level")
    if isinstance(raw, bool):
        raise RewardConfigError(f"Invalid reward level: {key!r}")
    try:
        level = int(raw)
    except (TypeError, ValueError) as exc:
        raise RewardConfigError(f"Invalid reward level: {key!r}") from exc
    if not 1 <= level <= MAX_REFERRAL_LEVELS:
        raise RewardConfigError(
            f"Reward level must be between 1 and {MAX_REFERRAL_LEVELS}, got {level}"
        )
    return level


def _parse_amount(level: int, value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise RewardConfigError(f"Invalid reward amount for level {level}: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise RewardConfigError(
            f"Invalid reward amount for level {level}: {value!r}"
        ) from exc
    if not amount.is_finite():
        raise RewardConfigError(f"Invalid reward amount for level {level}: {value!r}")
    if amount < 0:
        raise RewardConfigError(
            f"Reward amount for level {level} cannot be negative: {amount}"
        )
    return amount.quantize(MONEY_QUANT)


@dataclass(frozen=True)
class RewardConfig:
    """Immutable level -> reward amount table."""

    amounts: Mapping[int, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_REFERRAL_REWARDS)
    )

    @classmethod
    def default(cls) -> "RewardConfig":
        """Built-in reward table."""
        return cls()

    @classmethod
    def from_storage(cls, value: Any) -> "RewardConfig":
        """
        Build config from a stored settings value.

        Stored levels override the defaults; missing levels keep them.

        Raises:
            RewardConfigError: If the value is not a mapping or holds
                invalid levels/amounts
        """
        if not isinstance(value, Mapping):
            raise RewardConfigError(
                f"Reward config must be a mapping, got {type(value).__name__}"
            )
        return cls.default().merged(value)

    def merged(self, partial: Mapping[Any, Any]) -> "RewardConfig":
        """
        Return a new config with partial overrides applied.

        Raises:
            RewardConfigError: On unknown levels or negative amounts
        """
        amounts = dict(self.amounts)
        for key, value in partial.items():
            level = _parse_level(key)
            amounts[level] = _parse_amount(level, value)
        return RewardConfig(amounts=amounts)

    def amount_for(self, level: int) -> Decimal:
        """Reward for a level, zero for levels outside the table."""
        return self.amounts.get(level, Decimal("0"))

    def to_storage(self) -> dict[str, str]:
        """Settings value: {"level1": "200.00", ...}."""
        return {
            f"level{level}": str(amount)
            for level, amount in sorted(self.amounts.items())
        }


class RewardConfigService:
    """Reads and updates the reward table stored in system_settings."""

    def __init__(
        self, session: AsyncSession, timeout: float | None = None
    ) -> None:
        """
        Initialize reward config service.

        Args:
            session: Async database session
            timeout: Seconds before a settings read counts as failed
        """
        self.session = session
        self.settings_repo = SystemSettingRepository(session)
        self.timeout = timeout

    async def load_config(self) -> RewardConfig:
        """
        Load the active reward configuration.

        Never raises. Falls back to defaults when nothing is stored, the
        stored value is malformed, or the read fails. On a failed read the
        session is rolled back, so call this before writing in the session.

        Returns:
            Active RewardConfig
        """
        try:
            value = await asyncio.wait_for(
                self.settings_repo.get_value(REFERRAL_REWARD_CONFIG_KEY),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(
                "Reward config unavailable, using defaults",
                extra={"key": REFERRAL_REWARD_CONFIG_KEY, "error": str(e)},
            )
            try:
                await self.session.rollback()
            except Exception as rollback_error:
                logger.error(f"Failed to rollback after config read: {rollback_error}")
            return RewardConfig.default()

        if value is None:
            logger.debug("No stored reward config, using defaults")
            return RewardConfig.default()

        try:
            return RewardConfig.from_storage(value)
        except RewardConfigError as e:
            logger.warning(f"Stored reward config is invalid, using defaults: {e}")
            return RewardConfig.default()

    async def update_config(
        self, partial: Mapping[Any, Any]
    ) -> RewardConfig:
        """
        Merge partial overrides over the stored config and persist it.

        Args:
            partial: {level: amount} or {"levelN": amount}

        Returns:
            New active RewardConfig

        Raises:
            RewardConfigError: On unknown levels or negative amounts
        """
        if not partial:
            raise RewardConfigError("Reward config update is empty")

        stored = await self.settings_repo.get_value(REFERRAL_REWARD_CONFIG_KEY)
        current = RewardConfig.default()
        if stored is not None:
            try:
                current = RewardConfig.from_storage(stored)
            except RewardConfigError as e:
                logger.warning(f"Replacing invalid stored reward config: {e}")

        # Validates before anything is written
        new_config = current.merged(partial)

        await self.settings_repo.upsert_value(
            REFERRAL_REWARD_CONFIG_KEY,
            new_config.to_storage(),
            REFERRAL_REWARD_CONFIG_DESCRIPTION,
        )
        await self.session.commit()

        logger.info(
            "Referral reward config updated",
            extra={"config": new_config.to_storage()},
        )
        return new_config
