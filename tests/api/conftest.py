"""
API test fixtures.

Provides: Full application wired to a fake provider and an in-memory SQLite
database, created inside the TestClient event loop
Dependencies: fastapi, sqlalchemy, aiosqlite
System role: HTTP-level test infrastructure
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from buddy.api.deps.dependencies import ServiceContainer
from buddy.api.main import create_app
from buddy.boundary.db import get_async_db
from buddy.boundary.db.base import Base
from buddy.core.llm.factory import ProviderRegistry

# Registers every model on Base.metadata
import buddy.boundary.db.models  # noqa: F401


@pytest.fixture
def container(full_width_provider) -> ServiceContainer:
    """Service container backed by the fake provider."""
    return ServiceContainer(registry=ProviderRegistry(provider=full_width_provider))


@pytest.fixture
def api_client(container: ServiceContainer):
    """
    TestClient for the full application.

    The engine connects lazily, so the single pooled connection and the
    schema are created on the client's own event loop.

    Yields:
        TestClient: Client with get_async_db overridden
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_async_db():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with session_factory() as session:
            yield session

    app = create_app(container)
    app.dependency_overrides[get_async_db] = override_get_async_db

    with TestClient(app) as client:
        yield client
        client.portal.call(engine.dispose)

    app.dependency_overrides.clear()
