"""
Health check API endpoints.

Routes: GET /health, GET /health/live, GET /health/ready,
POST /health/circuit-breakers/reset

Dependencies: buddy.application.services.health_service
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from buddy.api.deps import ServiceContainer, get_container, get_health_service
from buddy.api.routers.router_utils.error_handling import handle_api_errors
from buddy.application.services.health_service import HealthService
from buddy.models.health import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


def _report(report: HealthResponse) -> JSONResponse:
    status_code = 503 if report.status == "unhealthy" else 200
    return JSONResponse(status_code=status_code, content=report.model_dump(mode="json"))


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Process is up."""
    return {"status": "alive"}


@router.get("/ready", response_model=HealthResponse)
async def readiness(service: HealthService = Depends(get_health_service)) -> JSONResponse:
    """Ready when the database answers; 503 otherwise."""
    return _report(await service.readiness())


@router.get("", response_model=HealthResponse)
async def health_check(service: HealthService = Depends(get_health_service)) -> JSONResponse:
    """Detailed health: database, provider circuit breakers and cache."""
    return _report(await service.detailed())


@router.post("/circuit-breakers/reset")
@handle_api_errors
async def reset_circuit_breakers(
    container: ServiceContainer = Depends(get_container),
) -> dict:
    """Force the provider's circuit breakers back to CLOSED."""
    container.registry.reset_circuit_breakers()
    return {"status": "reset", "circuit_breakers": container.registry.get_circuit_breaker_stats()}
