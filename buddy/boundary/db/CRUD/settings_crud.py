"""
Chat settings CRUD operations.

The settings table holds at most one row; reads return it or None and
writes update it in place or create it.

Dependencies: sqlalchemy, buddy.boundary.db.models
System role: Runtime chat configuration persistence
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.base_crud import BaseCRUD
from buddy.boundary.db.models.settings_model import SettingsModel


class SettingsCRUD(BaseCRUD[SettingsModel]):
    """CRUD operations for the single SettingsModel row."""

    def __init__(self) -> None:
        """Initialize SettingsCRUD with SettingsModel."""
        super().__init__(SettingsModel)

    async def get_current(self, session: AsyncSession) -> SettingsModel | None:
        """Return the settings row, or None if none was ever saved."""
        stmt = select(SettingsModel).order_by(SettingsModel.created_at.asc()).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, session: AsyncSession, **fields: Any) -> SettingsModel:
        """
        Update the settings row, creating it on first save.

        Args:
            session: Async database session
            **fields: Columns to set

        Returns:
            SettingsModel: The stored row
        """
        current = await self.get_current(session)
        if current is None:
            return await self.create(session, **fields)

        for name, value in fields.items():
            setattr(current, name, value)
        await session.flush()
        await session.refresh(current)
        return current


settings_crud = SettingsCRUD()
