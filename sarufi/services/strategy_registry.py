"""
Strategy registry.

Stores strategies by name and allocates one Agent per strategy name.
Re-registering a name replaces both the strategy and its agent; sessions
already bound to the name pick up the new strategy on their next turn.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from sarufi.core.config import OracleConfig
from sarufi.core.exceptions import StrategyNotFoundError, ValidationError
from sarufi.domain.models.strategy import Strategy
from sarufi.llm.client import get_llm_client_for_strategy
from sarufi.services.agent import Agent, ClientFactory

log = structlog.get_logger(__name__)

REQUIRED_FIELDS = ("name", "primary_goal", "domain", "personality", "guidelines")
NON_EMPTY_FIELDS = ("name", "primary_goal", "domain")


def validate_strategy(strategy: Union[Strategy, Mapping[str, Any]]) -> Strategy:
    """
    Coerce and validate a strategy definition.

    Args:
        strategy: Strategy model or raw mapping (e.g. parsed YAML / JSON body)

    Returns:
        Validated Strategy

    Raises:
        ValidationError: If a required field is missing or empty
    """
    if not isinstance(strategy, Strategy):
        missing = [f for f in REQUIRED_FIELDS if strategy.get(f) is None]
        if missing:
            raise ValidationError(
                f"Strategy is missing required fields: {', '.join(missing)}"
            )
        try:
            strategy = Strategy.model_validate(dict(strategy))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid strategy definition: {e}") from e

    empty = [f for f in NON_EMPTY_FIELDS if not getattr(strategy, f).strip()]
    if empty:
        raise ValidationError(f"Strategy fields must not be empty: {', '.join(empty)}")

    return strategy


class StrategyRegistry:
    """Named strategies and their agents."""

    def __init__(
        self,
        client_factory: ClientFactory = get_llm_client_for_strategy,
        oracle_config: Optional[OracleConfig] = None,
    ):
        self._strategies: Dict[str, Strategy] = {}
        self._agents: Dict[str, Agent] = {}
        self._client_factory = client_factory
        self._oracle_config = oracle_config

    def register(self, strategy: Union[Strategy, Mapping[str, Any]]) -> Strategy:
        """Validate and store a strategy, replacing any with the same name."""
        strategy = validate_strategy(strategy)
        replaced = strategy.name in self._strategies

        self._strategies[strategy.name] = strategy
        self._agents[strategy.name] = Agent(
            strategy,
            client_factory=self._client_factory,
            oracle_config=self._oracle_config,
        )

        if replaced:
            log.info("strategy_replaced", strategy=strategy.name)
        else:
            log.info(
                "strategy_registered",
                strategy=strategy.name,
                domain=strategy.domain,
                llm_provider=strategy.llm_provider,
                model=strategy.model,
            )
        return strategy

    def get(self, name: str) -> Optional[Strategy]:
        return self._strategies.get(name)

    def list(self) -> List[Strategy]:
        return list(self._strategies.values())

    def unregister(self, name: str) -> bool:
        """Remove a strategy and drop its agent. Returns whether it existed."""
        existed = self._strategies.pop(name, None) is not None
        self._agents.pop(name, None)
        if existed:
            log.info("strategy_unregistered", strategy=name)
        return existed

    def get_agent(self, name: str) -> Agent:
        """
        Agent bound to a strategy name.

        Raises:
            StrategyNotFoundError: If no strategy is registered under `name`
        """
        agent = self._agents.get(name)
        if agent is None:
            raise StrategyNotFoundError(f"Strategy '{name}' not found")
        return agent

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)
