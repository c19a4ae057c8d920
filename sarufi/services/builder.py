"""
Orchestrator builder.

Collects strategies (from code or YAML files) and wiring overrides, then
produces a SessionOrchestrator with every strategy registered.
"""

from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

import structlog

from sarufi.core.config import OrchestratorConfig
from sarufi.core.strategy_loader import load_all_strategies
from sarufi.domain.models.strategy import Strategy
from sarufi.services.agent import ClientFactory
from sarufi.services.orchestrator import SessionOrchestrator

log = structlog.get_logger(__name__)

StrategyInput = Union[Strategy, Mapping[str, Any]]


class OrchestratorBuilder:
    """Fluent builder for SessionOrchestrator.

    Example:
        orchestrator = (
            create_builder()
            .with_strategies_from_dir()
            .with_strategy(custom_strategy)
            .build()
        )
    """

    def __init__(self):
        self._strategies: List[StrategyInput] = []
        self._client_factory: Optional[ClientFactory] = None
        self._config: Optional[OrchestratorConfig] = None
        self._turn_timeout: Optional[float] = None

    def with_strategy(self, strategy: StrategyInput) -> "OrchestratorBuilder":
        self._strategies.append(strategy)
        return self

    def with_strategies_from_dir(
        self, strategies_dir: Optional[Path] = None
    ) -> "OrchestratorBuilder":
        """Queue every strategy file in a directory (defaults to settings)."""
        self._strategies.extend(load_all_strategies(strategies_dir).values())
        return self

    def with_client_factory(self, client_factory: ClientFactory) -> "OrchestratorBuilder":
        self._client_factory = client_factory
        return self

    def with_config(self, config: OrchestratorConfig) -> "OrchestratorBuilder":
        self._config = config
        return self

    def with_turn_timeout(self, seconds: float) -> "OrchestratorBuilder":
        self._turn_timeout = seconds
        return self

    def build(self) -> SessionOrchestrator:
        """
        Create the orchestrator and register queued strategies in order.

        Raises:
            ValidationError: If a queued strategy is invalid
        """
        kwargs: dict = {"config": self._config, "turn_timeout": self._turn_timeout}
        if self._client_factory is not None:
            kwargs["client_factory"] = self._client_factory
        orchestrator = SessionOrchestrator(**kwargs)

        for strategy in self._strategies:
            orchestrator.register_strategy(strategy)

        log.info("orchestrator_built", strategies=len(orchestrator.list_strategies()))
        return orchestrator


def create_builder() -> OrchestratorBuilder:
    return OrchestratorBuilder()


def create_orchestrator(strategy: StrategyInput) -> SessionOrchestrator:
    """Orchestrator with a single strategy registered."""
    return create_builder().with_strategy(strategy).build()
