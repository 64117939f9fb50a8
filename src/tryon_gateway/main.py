"""
FastAPI application entry point for the Try-On Gateway.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from tryon_gateway import __version__
from tryon_gateway.api.error_handlers import EXCEPTION_HANDLERS
from tryon_gateway.api.middleware import RequestTracingMiddleware
from tryon_gateway.api.routes import router
from tryon_gateway.config import Settings, settings as default_settings
from tryon_gateway.logging_config import configure_logging
from tryon_gateway.service import TryOnService

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[TryOnService] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment-loaded ones)
        service: Prebuilt service; when omitted one is built at startup
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Application startup",
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            gradio_url=settings.GRADIO_URL,
            api_name=settings.TRYON_API_NAME,
        )
        owns_service = service is None
        app.state.service = service or TryOnService.from_settings(settings)
        logger.info("Application startup complete")
        try:
            yield
        finally:
            logger.info("Application shutdown")
            if owns_service:
                await app.state.service.close()
            app.state.service = None
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Request orchestration for a remote virtual try-on service",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Request tracing middleware (must be first for request_id in all logs)
    app.add_middleware(RequestTracingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    app.include_router(router)

    if settings.PROMETHEUS_ENABLED:
        Instrumentator().instrument(app).expose(app)

    @app.get("/")
    async def root():
        """Root endpoint with API documentation links."""
        return {
            "service": settings.APP_NAME,
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
        }

    return app


# Configure structured logging before the app is built
configure_logging(default_settings.LOG_LEVEL, default_settings.ENVIRONMENT)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tryon_gateway.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.DEBUG,
    )
