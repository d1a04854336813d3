"""ChronoSync API layer — public and admin routes, schemas, and middleware."""

from src.api.admin_routes import admin_router
from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import ApiResponse, ErrorResponse, HealthResponse

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "admin_router",
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
]
