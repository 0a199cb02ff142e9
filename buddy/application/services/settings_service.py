"""
Chat settings service.

Reads the effective chat settings (stored row with defaults applied) and
applies partial updates from the admin API.

Dependencies: buddy.boundary.db, buddy.core.rag
System role: Runtime chat configuration orchestration
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.settings_crud import settings_crud
from buddy.core.exceptions import ValidationError
from buddy.core.llm.types import ProviderType
from buddy.core.rag.prompt_builder import get_settings_or_defaults
from buddy.models.settings import SettingsResponse, SettingsUpdate

logger = logging.getLogger(__name__)

AVAILABLE_MODELS = {
    ProviderType.OLLAMA: ["llama3.1", "llama3", "mistral", "codellama", "gemma2"],
    ProviderType.OPENAI: ["gpt-4o-mini", "gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"],
}


class SettingsService:
    """Chat settings read/update operations."""

    def __init__(
        self,
        db: AsyncSession,
        provider_type: ProviderType,
        default_model_name: str | None = None,
    ) -> None:
        """
        Initialize settings service.

        Args:
            db: AsyncSession for database operations
            provider_type: Active provider backend
            default_model_name: Provider's configured chat model
        """
        self.db = db
        self.provider_type = provider_type
        self.default_model_name = default_model_name

    async def get_settings(self) -> SettingsResponse:
        """Return the effective settings, defaults filled in."""
        row = await settings_crud.get_current(self.db)
        resolved = get_settings_or_defaults(row, default_model_name=self.default_model_name)
        return SettingsResponse(
            **resolved.model_dump(),
            provider=self.provider_type.value,
            available_models=AVAILABLE_MODELS.get(self.provider_type, []),
        )

    async def update_settings(self, update: SettingsUpdate) -> SettingsResponse:
        """
        Apply the fields present in the update; others keep their stored value.

        Args:
            update: Partial settings

        Returns:
            SettingsResponse: Effective settings after the update

        Raises:
            ValidationError: If no field was supplied
        """
        fields = update.model_dump(exclude_unset=True)
        if not fields:
            raise ValidationError("No settings fields provided")

        await settings_crud.upsert(self.db, **fields)
        await self.db.commit()
        logger.info(
            f"{__name__}:update_settings - Updated chat settings",
            extra={"fields": ", ".join(sorted(fields))},
        )
        return await self.get_settings()
