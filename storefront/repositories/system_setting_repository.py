"""
System setting repository.

Key/value access to the system_settings table.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.system_setting import SystemSetting
from storefront.repositories.base import BaseRepository


class SystemSettingRepository(BaseRepository[SystemSetting]):
    """System setting repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize system setting repository."""
        super().__init__(SystemSetting, session)

    async def get_value(self, key: str) -> Any | None:
        """
        Get a setting value by key.

        Args:
            key: Setting name

        Returns:
            Stored JSON value or None if the key is absent
        """
        setting = await self.get_by(key=key)
        return setting.value if setting else None

    async def upsert_value(
        self, key: str, value: Any, description: str | None = None
    ) -> SystemSetting:
        """
        Create or replace a setting value.

        Args:
            key: Setting name
            value: JSON-serializable value
            description: Optional human-readable description

        Returns:
            Persisted setting
        """
        setting = await self.get_by(key=key)
        if setting is None:
            return await self.create(
                key=key, value=value, description=description
            )

        setting.value = value
        if description is not None:
            setting.description = description
        await self.session.flush()
        return setting
