"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, buddy.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware

from buddy.api import api_router
from buddy.api.deps.dependencies import ServiceContainer, get_container, set_container
from buddy.api.routers.router_utils.error_handling import exception_to_http
from buddy.boundary.db.connection import dispose_engine
from buddy.configs import get_settings
from buddy.core.exceptions import BuddyException
from buddy.observability.logger import configure_logging
from buddy.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    # Startup
    container = get_container()
    settings = container.settings
    configure_logging(settings.effective_log_level)
    app.state.metrics = container.metrics
    logger = logging.getLogger("uvicorn")

    logger.info(
        f"{settings.app_name} ready (environment={settings.environment}, "
        f"provider={container.registry.provider_type.value})"
    )

    yield

    # Shutdown
    await container.aclose()
    set_container(None)
    await dispose_engine()
    logger.info("Service container closed")


async def buddy_exception_handler(request: Request, exc: BuddyException):
    """Map errors raised outside decorated endpoints (e.g. in dependencies)."""
    return await http_exception_handler(request, exception_to_http(exc))


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        container: Pre-built service container (tests)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    if container is not None:
        set_container(container)
    settings = container.settings if container is not None else get_settings()

    app = FastAPI(
        title="Buddy Knowledge Base API",
        description="Retrieval-augmented chat assistant over an internal knowledge base",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(BuddyException, buddy_exception_handler)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "buddy.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
