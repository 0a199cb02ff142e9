"""
LLM provider configuration settings.

Selects the active provider backend (local Ollama server or hosted OpenAI API)
and holds model names, endpoints and per-attempt timeouts for each.

Dependencies: pydantic, pydantic_settings
System role: Provider selection and model configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from buddy.configs.base import BaseSettings


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LLM_",
        case_sensitive=False,
        extra="ignore",
    )

    provider: str = Field(
        default="openai",
        description="Active provider backend: 'openai' (hosted) or 'ollama' (local)",
    )
    default_temperature: float = Field(default=0.7, description="Default sampling temperature")

    # Hosted API
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_chat_model: str = Field(default="gpt-4o-mini", description="OpenAI chat model")
    openai_embedding_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model",
    )
    openai_timeout_ms: int = Field(default=30000, description="Per-attempt timeout for OpenAI calls")

    # Local model server
    ollama_base_url: str = Field(default="http://localhost:11434", description="Ollama server URL")
    ollama_chat_model: str = Field(default="llama3.1", description="Ollama chat model")
    ollama_embedding_model: str = Field(
        default="nomic-embed-text",
        description="Ollama embedding model",
    )
    ollama_timeout_ms: int = Field(
        default=60000,
        description="Per-attempt timeout for Ollama calls (local models are slower)",
    )
