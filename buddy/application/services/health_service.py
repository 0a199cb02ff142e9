"""
Health service.

Liveness, readiness and a detailed report combining the database check,
the provider's circuit breaker states and similarity cache counters.

Dependencies: sqlalchemy, buddy.core.llm, buddy.core.rag
System role: Operational health reporting
"""

import logging
import time
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.chunk_crud import chunk_crud
from buddy.boundary.db.CRUD.conversation_crud import conversation_crud
from buddy.boundary.db.CRUD.document_crud import document_crud
from buddy.core.exceptions import BuddyException
from buddy.core.llm.factory import ProviderRegistry
from buddy.core.rag.cache import SimilarityCache
from buddy.core.resilience import CircuitState
from buddy.models.health import HealthCheck, HealthResponse

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def overall_status(checks: dict[str, HealthCheck]) -> str:
    """Any failing check is unhealthy; any warning is degraded."""
    statuses = {check.status for check in checks.values()}
    if "fail" in statuses:
        return "unhealthy"
    if "warn" in statuses:
        return "degraded"
    return "healthy"


class HealthService:
    """Builds health reports for the health endpoints."""

    def __init__(
        self,
        db: AsyncSession,
        registry: ProviderRegistry,
        cache: SimilarityCache,
    ) -> None:
        self.db = db
        self.registry = registry
        self.cache = cache

    async def check_database(self) -> HealthCheck:
        """Run SELECT 1 and report row counts."""
        start = time.perf_counter()
        try:
            await self.db.execute(text("SELECT 1"))
            counts = {
                "documents": await document_crud.count(self.db),
                "chunks": await chunk_crud.count(self.db),
                "conversations": await conversation_crud.count(self.db),
            }
        except SQLAlchemyError as e:
            logger.error(f"{__name__}:check_database - Database check failed: {e}")
            return HealthCheck(
                status="fail",
                message="Database connection failed",
                latency_ms=_elapsed_ms(start),
                details={"error": str(e)},
            )
        return HealthCheck(
            status="pass",
            message="Database is healthy",
            latency_ms=_elapsed_ms(start),
            details=counts,
        )

    def check_provider(self) -> HealthCheck:
        """Report breaker states: both open fails, one open warns."""
        start = time.perf_counter()
        try:
            stats = self.registry.get_circuit_breaker_stats()
        except BuddyException as e:
            return HealthCheck(
                status="fail",
                message=e.message,
                latency_ms=_elapsed_ms(start),
            )

        provider = self.registry.provider_type.value
        chat_open = stats["chat"]["state"] == CircuitState.OPEN.value
        embedding_open = stats["embedding"]["state"] == CircuitState.OPEN.value
        details: dict[str, Any] = {"provider": provider, **stats}

        if chat_open and embedding_open:
            status, message = "fail", f"{provider} services unavailable (circuit breakers open)"
        elif chat_open or embedding_open:
            status, message = "warn", f"{provider} partially degraded"
        else:
            status, message = "pass", f"{provider} circuit breakers closed"

        return HealthCheck(
            status=status,
            message=message,
            latency_ms=_elapsed_ms(start),
            details=details,
        )

    def check_cache(self) -> HealthCheck:
        return HealthCheck(status="pass", details=self.cache.stats())

    async def readiness(self) -> HealthResponse:
        """Ready when the database answers."""
        checks = {"database": await self.check_database()}
        return HealthResponse(status=overall_status(checks), checks=checks, version=APP_VERSION)

    async def detailed(self) -> HealthResponse:
        """Database, provider and cache checks combined."""
        checks = {
            "database": await self.check_database(),
            "llm": self.check_provider(),
            "cache": self.check_cache(),
        }
        report = HealthResponse(status=overall_status(checks), checks=checks, version=APP_VERSION)
        if report.status != "healthy":
            logger.warning(
                f"{__name__}:detailed - Health {report.status}",
                extra={name: check.status for name, check in checks.items()},
            )
        return report
