"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Response
from pydantic import BaseModel

from inventory_analytics.config import get_settings
from inventory_analytics.database.connection import check_database_health
from inventory_analytics.transformation.windows import utc_now

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    The API stays up without a database (the analytics routes then answer
    503), so a failing database only degrades the status.
    """
    settings = get_settings()
    db_health = await check_database_health()
    overall_status = "healthy" if db_health.get("status") == "healthy" else "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=utc_now(),
        checks={"database": db_health},
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 while the process is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """Returns 200 when the database answers, 503 otherwise."""
    db_health = await check_database_health()
    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}
