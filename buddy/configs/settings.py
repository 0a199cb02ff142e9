"""
Aggregated application settings.

Settings holds one instance of each section, built when Settings itself is
built so environment changes made before the first get_settings() call are
honoured. get_settings() caches the result for the life of the process;
provider selection is therefore fixed at startup.

Dependencies: pydantic, buddy.configs sections
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from buddy.configs.base import BaseSettings
from buddy.configs.database import DatabaseSettings
from buddy.configs.llm import LLMSettings
from buddy.configs.rag import RAGSettings
from buddy.configs.resilience import ResilienceSettings


class Settings(BaseSettings):
    """Root fields plus the database, LLM, resilience and RAG sections."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    resilience: ResilienceSettings = Field(default_factory=ResilienceSettings)
    rag: RAGSettings = Field(default_factory=RAGSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Process-wide settings.

    Returns:
        Settings: Built on first call from the environment and .env

    Usage:
        from buddy.configs import get_settings
        top_k = get_settings().rag.default_top_k
    """
    return Settings()
