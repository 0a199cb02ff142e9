"""
Configuration package.

Exports:
  - Settings, get_settings(): Aggregated application settings
  - DatabaseSettings, LLMSettings, ResilienceSettings, RAGSettings: Sections
"""

from buddy.configs.database import DatabaseSettings
from buddy.configs.llm import LLMSettings
from buddy.configs.rag import RAGSettings
from buddy.configs.resilience import ResilienceSettings
from buddy.configs.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "DatabaseSettings",
    "LLMSettings",
    "RAGSettings",
    "ResilienceSettings",
]
