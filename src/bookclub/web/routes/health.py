"""Health check endpoint."""

import sqlite3
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Request, Response, status

from bookclub import __version__
from bookclub.db.database import check_connection
from bookclub.services.ai_service import get_ai_service
from bookclub.services.stripe_service import StripeService
from bookclub.web.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """Check API health status, including the database connection."""
    config = request.app.state.config
    try:
        check_connection()
        database = "connected"
    except sqlite3.Error as e:
        logger.error("health_check_failed", error=str(e))
        database = "disconnected"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="ok" if database == "connected" else "unhealthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=config.server.environment,
        services={
            "database": database,
            "ai": "configured" if get_ai_service().is_configured() else "not_configured",
            "payments": "configured" if StripeService(config.stripe).is_configured else "not_configured",
        },
    )
