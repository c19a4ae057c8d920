"""
Strategy API routes.

Endpoints for registering, inspecting and removing strategies.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Response, status
import structlog

from sarufi.api.dependencies import OrchestratorDep
from sarufi.api.schemas import StrategyListResponse, StrategySummary
from sarufi.core.exceptions import StrategyNotFoundError
from sarufi.domain.models.stats import StrategyPerformance
from sarufi.domain.models.strategy import Strategy

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/strategies", tags=["strategies"])


@router.get("", response_model=StrategyListResponse)
async def list_strategies(orchestrator: OrchestratorDep):
    """List registered strategies."""
    strategies = orchestrator.list_strategies()
    return StrategyListResponse(
        strategies=[StrategySummary.from_strategy(s) for s in strategies],
        total=len(strategies),
    )


@router.post("", response_model=Strategy, status_code=status.HTTP_201_CREATED)
async def register_strategy(
    orchestrator: OrchestratorDep,
    definition: Dict[str, Any] = Body(...),
):
    """Register a strategy, replacing any with the same name.

    The body is validated by the registry so missing fields surface as a
    400 ValidationError with the field names.
    """
    return orchestrator.register_strategy(definition)


@router.get("/{name}", response_model=Strategy)
async def get_strategy(name: str, orchestrator: OrchestratorDep):
    strategy = orchestrator.get_strategy(name)
    if strategy is None:
        raise StrategyNotFoundError(f"Strategy '{name}' not found")
    return strategy


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def unregister_strategy(name: str, orchestrator: OrchestratorDep):
    """Remove a strategy. Sessions bound to it fail on their next turn."""
    if not orchestrator.unregister_strategy(name):
        raise StrategyNotFoundError(f"Strategy '{name}' not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{name}/performance", response_model=StrategyPerformance)
async def get_strategy_performance(name: str, orchestrator: OrchestratorDep):
    """Performance rollup over every session bound to the strategy name."""
    return orchestrator.get_strategy_performance(name)
