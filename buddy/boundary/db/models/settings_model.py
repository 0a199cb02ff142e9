"""
Chat settings ORM model.

Single-row table holding the admin-editable persona and generation defaults.
Unset columns fall back to application defaults at chat time.

Dependencies: sqlalchemy, buddy.boundary.db.base
System role: Runtime chat configuration persistence
"""

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from buddy.boundary.db.base import Base, TimestampMixin, UUIDMixin


class SettingsModel(Base, UUIDMixin, TimestampMixin):
    """
    Chat settings ORM model.

    Attributes:
        system_prompt: Persona prepended to every prompt
        model_name: Chat model override
        temperature: Sampling temperature override (0-2)
        max_tokens: Completion length cap
    """

    __tablename__ = "chat_settings"

    system_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    model_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
