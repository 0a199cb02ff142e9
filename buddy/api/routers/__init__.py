"""API routers."""

from .admin import router as admin_router
from .chat import router as chat_router
from .conversations import router as conversations_router
from .health import router as health_router

__all__ = [
    "admin_router",
    "chat_router",
    "conversations_router",
    "health_router",
]
