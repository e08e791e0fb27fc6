"""API module exports."""

from src.api.clients import router as clients_router
from src.api.deps import get_client_service, get_db, get_storage
from src.api.errors import register_error_handlers
from src.api.health import router as health_router

__all__ = [
    "clients_router",
    "get_client_service",
    "get_db",
    "get_storage",
    "health_router",
    "register_error_handlers",
]
