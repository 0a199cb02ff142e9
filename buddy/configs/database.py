"""
Database configuration settings.

PostgreSQL with the pgvector extension. Either a full DSN (POSTGRES_URL)
or the individual parts are accepted; both are turned into an asyncpg URL.

Dependencies: pydantic, pydantic_settings
System role: Connection parameters for the async SQLAlchemy engine
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from buddy.configs.base import BaseSettings

_SYNC_SCHEMES = ("postgresql://", "postgres://", "postgresql+psycopg://", "postgresql+psycopg2://")


def to_asyncpg_url(url: str) -> str:
    """Rewrite a plain or sync-driver Postgres DSN to use asyncpg."""
    for scheme in _SYNC_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme):]
    return url


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection and pool settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="POSTGRES_",
        case_sensitive=False,
        extra="ignore",
    )

    url: str | None = Field(default=None, description="Full DSN; overrides the parts below")
    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = "postgres"
    db: str = Field(default="buddy", description="Database name")
    sslmode: str = Field(default="disable", description="'require' for managed Postgres")

    pool_size: int = Field(default=10, ge=1)
    max_overflow: int = Field(default=20, ge=0)
    pool_timeout: int = Field(default=30, ge=1, description="Seconds to wait for a connection")
    echo_sql: bool = False

    @property
    def async_database_url(self) -> str:
        """
        Build the asyncpg connection URL.

        Returns:
            str: postgresql+asyncpg DSN; asyncpg takes 'ssl' rather than 'sslmode'
        """
        if self.url:
            return to_asyncpg_url(self.url)
        ssl_param = "?ssl=require" if self.sslmode == "require" else ""
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.db}{ssl_param}"
        )
