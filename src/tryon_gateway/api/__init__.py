"""
FastAPI API routes and endpoints.

- routes.py: POST /tryon, POST /admin/clear-requests, GET /health
- dependencies.py: Dependency injection for settings, service and identity
- models.py: API-specific response models
- validation.py: Upload validation (MIME allow-list, size limit)
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request tracing
"""

from tryon_gateway.api import dependencies, error_handlers, models
from tryon_gateway.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
