"""
Chat settings schemas.

Dependencies: pydantic
System role: Admin settings API contracts
"""

from pydantic import BaseModel, Field, field_validator


class SettingsUpdate(BaseModel):
    """Partial update of the chat settings row; omitted fields are unchanged."""

    system_prompt: str | None = Field(default=None, max_length=5000)
    model_name: str | None = Field(default=None, min_length=1, max_length=100)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0, le=100000)

    @field_validator("system_prompt", "model_name")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None


class SettingsResponse(BaseModel):
    """Effective chat settings (defaults applied)."""

    system_prompt: str
    model_name: str | None
    temperature: float
    max_tokens: int | None
    provider: str
    available_models: list[str] = Field(default_factory=list)
