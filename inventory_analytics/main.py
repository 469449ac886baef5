"""
FastAPI Application

Main entry point for the Inventory Analytics API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from inventory_analytics.config.logging import configure_logging
from inventory_analytics.database.connection import close_database, init_database
from inventory_analytics.serving.api.main import create_api_app

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Inventory Analytics API")

    # The API still starts without a database; analytics calls then return 503
    try:
        await init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.warning("Database init failed", error=str(e), error_type=type(e).__name__)

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)
