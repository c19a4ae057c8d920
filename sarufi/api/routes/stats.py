"""Process-wide statistics endpoint."""

from fastapi import APIRouter

from sarufi.api.dependencies import OrchestratorDep
from sarufi.domain.models.stats import Stats

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=Stats)
async def get_stats(orchestrator: OrchestratorDep):
    return orchestrator.get_stats()
