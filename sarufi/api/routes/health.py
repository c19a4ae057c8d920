"""
Health check endpoints.

Provides system health information for monitoring.
"""

from fastapi import APIRouter
import structlog

from sarufi import __version__
from sarufi.api.dependencies import OrchestratorDep
from sarufi.core.config import settings

log = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(orchestrator: OrchestratorDep):
    """
    Health check endpoint.

    Returns:
        Service status with registered strategy and active session counts.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "debug": settings.debug,
        "components": {
            "strategies": len(orchestrator.list_strategies()),
            "active_sessions": len(orchestrator.get_active_sessions()),
        },
    }


@router.get("/health/live")
async def liveness():
    """Liveness probe. Returns 200 if the application is running."""
    return {"status": "alive"}
