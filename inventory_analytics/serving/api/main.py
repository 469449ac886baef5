"""
FastAPI Application Factory

Creates and configures the main API application.
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from inventory_analytics.config import get_settings
from inventory_analytics.exceptions import FetchError
from inventory_analytics.serving.api.middleware import RequestLoggingMiddleware
from inventory_analytics.serving.api.routes import analytics_router, health_router

logger = structlog.get_logger(__name__)


async def fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
    """A failed fetch aborts the pass; the client gets a short retryable message"""
    logger.error(
        "Analysis pass aborted",
        path=request.url.path,
        source=exc.source,
        error=str(exc),
    )
    return JSONResponse(
        status_code=503,
        content={"error": exc.user_message, "retryable": exc.retryable},
    )


def create_api_app(lifespan: Optional[Callable[[FastAPI], Any]] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Inventory Analytics API",
        description="Aging stock, fast movers and sales executive performance",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(FetchError, fetch_error_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
        }

    return app
