"""
Session orchestration.

SessionOrchestrator is the entry point for the conversation engine. It owns
the strategy registry, the session store and the stats aggregator, and drives
one oracle turn per message:

    lookup -> append user message -> Agent.process_turn -> merge delta
           -> apply goal/profile/memory -> append reply -> maybe escalate

Caller errors (unknown strategy or session, inactive session) are raised
before anything is mutated. Any other failure during a turn (oracle errors,
timeouts, missing or malformed decisions, rejected context deltas,
unexpected exceptions) is caught at the turn boundary: the session stays
active, no delta is applied and a degraded Output is returned.
"""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import structlog

from sarufi.core.config import OrchestratorConfig, orchestrator_config, settings
from sarufi.core.exceptions import (
    SessionNotActiveError,
    SessionNotFoundError,
    StrategyNotFoundError,
)
from sarufi.core.logging import bind_context, unbind_context
from sarufi.domain.models.agent_response import AgentResponse
from sarufi.domain.models.context_keys import AuditKey, merge_context_updates
from sarufi.domain.models.session import (
    MessageRole,
    Output,
    Session,
    SessionContext,
    SessionStatus,
)
from sarufi.domain.models.stats import SessionAnalytics, Stats, StrategyPerformance
from sarufi.domain.models.strategy import Strategy
from sarufi.llm.client import get_llm_client_for_strategy
from sarufi.llm.tools import Tool
from sarufi.services.agent import Agent, ClientFactory
from sarufi.services.session_store import SessionStore
from sarufi.services.stats_service import StatsAggregator
from sarufi.services.strategy_registry import StrategyRegistry

log = structlog.get_logger(__name__)

# Raised to the caller even when they surface inside a turn
CALLER_ERRORS = (StrategyNotFoundError, SessionNotFoundError, SessionNotActiveError)

PROFILE_SENTIMENTS = ("positive", "neutral", "negative")


class SessionOrchestrator:
    """Starts, advances and ends sessions.

    Usage:
        orchestrator = SessionOrchestrator()
        orchestrator.register_strategy(strategy)
        session = await orchestrator.start_session("user-1", "shoe_sales")
        output = await orchestrator.send_message(session.session_id, "Hi")
        await orchestrator.end_session(session.session_id)
    """

    def __init__(
        self,
        registry: Optional[StrategyRegistry] = None,
        store: Optional[SessionStore] = None,
        stats: Optional[StatsAggregator] = None,
        config: Optional[OrchestratorConfig] = None,
        client_factory: ClientFactory = get_llm_client_for_strategy,
        turn_timeout: Optional[float] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            registry: Strategy registry (creates one bound to client_factory if None)
            store: Session store (creates an empty one if None)
            stats: Stats aggregator (creates one if None)
            config: Orchestrator config (defaults to orchestrator_config.yaml)
            client_factory: Builds the oracle client for a strategy
            turn_timeout: Seconds allowed for a whole turn (defaults to settings)
        """
        self.config = config or orchestrator_config
        self.registry = registry or StrategyRegistry(
            client_factory=client_factory, oracle_config=self.config.oracle
        )
        self.store = store or SessionStore()
        self.stats = stats or StatsAggregator()
        self.turn_timeout = turn_timeout or settings.turn_timeout

    # ==========================================================================
    # Strategies
    # ==========================================================================

    def register_strategy(self, strategy: Union[Strategy, Mapping[str, Any]]) -> Strategy:
        return self.registry.register(strategy)

    def get_strategy(self, name: str) -> Optional[Strategy]:
        return self.registry.get(name)

    def list_strategies(self) -> List[Strategy]:
        return self.registry.list()

    def unregister_strategy(self, name: str) -> bool:
        return self.registry.unregister(name)

    # ==========================================================================
    # Session lifecycle
    # ==========================================================================

    async def start_session(
        self,
        user_id: str,
        strategy_name: str,
        initial_context: Optional[Mapping[str, Any]] = None,
        tools: Optional[Sequence[Tool]] = None,
    ) -> Session:
        """
        Start a session and run its opening turn.

        Any active session of the same user is completed first. The opening
        turn uses the configured start marker as its prompt; the marker is not
        stored in the transcript.

        Args:
            user_id: User starting the session
            strategy_name: Registered strategy to bind
            initial_context: Business facts to seed user_inputs with
            tools: Domain tools for the opening turn

        Returns:
            Session whose initial_message is the opening turn's reply

        Raises:
            StrategyNotFoundError: If strategy_name is not registered
            ContextUpdateError: If initial_context carries mistyped audit keys
        """
        agent = self.registry.get_agent(strategy_name)
        user_inputs: Dict[str, Any] = {}
        merge_context_updates(user_inputs, initial_context or {})

        async with self.store.user_lock(user_id):
            existing = self.store.find_active_for_user(user_id)
            if existing is not None:
                log.info(
                    "ending_previous_active_session",
                    user_id=user_id,
                    previous_session_id=existing.session_id,
                )
                await self.end_session(existing.session_id)

            context = SessionContext(
                user_id=user_id,
                strategy_name=strategy_name,
                current_goal=self.config.session.initial_goal,
                user_inputs=user_inputs,
            )
            self.store.add(context)
            self.stats.record_session_started()

            log.info(
                "session_started",
                session_id=context.session_id,
                user_id=user_id,
                strategy=strategy_name,
            )

            async with self.store.session_lock(context.session_id):
                output = await self._run_turn(
                    agent, context, self.config.session.start_marker, tools
                )

        return Session(
            session_id=context.session_id,
            initial_message=output.message,
            context=context,
        )

    async def send_message(
        self,
        session_id: str,
        text: str,
        tools: Optional[Sequence[Tool]] = None,
    ) -> Output:
        """
        Process one user message.

        Args:
            session_id: Target session
            text: User message
            tools: Domain tools available for this turn

        Returns:
            Output with the reply, or the degraded reply if the turn failed

        Raises:
            SessionNotFoundError: If the session does not exist
            SessionNotActiveError: If the session is not active
            StrategyNotFoundError: If the bound strategy was unregistered
        """
        context = self._require_session(session_id)

        async with self.store.session_lock(session_id):
            if context.status != SessionStatus.ACTIVE:
                raise SessionNotActiveError(
                    f"Session {session_id} is {context.status.value}, not active"
                )
            agent = self.registry.get_agent(context.strategy_name)

            context.append_message(MessageRole.USER, text)
            context.touch()
            self.stats.record_user_message()

            return await self._run_turn(agent, context, text, tools)

    async def end_session(self, session_id: str) -> bool:
        """
        Complete a session.

        Returns:
            True if the session moved to completed; False if it does not
            exist or is already completed/escalated
        """
        context = self.store.get(session_id)
        if context is None:
            return False

        async with self.store.session_lock(session_id):
            if context.status.is_terminal:
                return False

            context.status = SessionStatus.COMPLETED
            context.touch()
            self.stats.record_session_completed(context.duration_seconds)

        log.info(
            "session_ended",
            session_id=session_id,
            duration_seconds=round(context.duration_seconds, 3),
            messages_count=context.messages_count,
        )
        return True

    # ==========================================================================
    # Turn processing
    # ==========================================================================

    async def _run_turn(
        self,
        agent: Agent,
        context: SessionContext,
        prompt: str,
        tools: Optional[Sequence[Tool]],
    ) -> Output:
        """Run the agent and apply its response; degrade on recoverable errors."""
        bind_context(session_id=context.session_id, strategy=context.strategy_name)
        start = time.perf_counter()

        try:
            try:
                response = await asyncio.wait_for(
                    agent.process_turn(prompt, context, tools),
                    timeout=self.turn_timeout,
                )
                updates = dict(response.context_updates)
                updates[AuditKey.DECISION_QUALITY.value] = response.meta.decision_quality
                merge_context_updates(context.user_inputs, updates)
            except CALLER_ERRORS:
                raise
            except Exception as e:
                return self._degraded_output(context, e)

            self._apply_response(context, response)

            log.info(
                "turn_processed",
                action=response.action_taken,
                confidence=response.confidence,
                decision_quality=response.meta.decision_quality,
                session_status=context.status.value,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )

            return Output(
                message=response.message,
                session_id=context.session_id,
                session_status=context.status,
                agent_reasoning=response.reasoning,
                suggested_actions=(
                    [response.suggested_next_user_action]
                    if response.suggested_next_user_action
                    else None
                ),
            )
        finally:
            unbind_context("session_id", "strategy")

    def _apply_response(self, context: SessionContext, response: AgentResponse) -> None:
        """Goal, profile, memory, transcript and escalation after a merged delta."""
        context.current_goal = context.user_inputs.get(
            AuditKey.CURRENT_GOAL.value, context.current_goal
        )

        if response.meta.user_sentiment in PROFILE_SENTIMENTS:
            context.user_profile.sentiment = response.meta.user_sentiment

        memory = context.agent_memory
        memory.last_action = response.action_taken
        memory.reasoning_history.append(response.reasoning)
        if response.meta.decision_quality == "high":
            memory.successful_patterns.append(response.action_taken)

        context.append_message(MessageRole.ASSISTANT, response.message)
        context.touch()

        if response.meta.should_escalate and context.status == SessionStatus.ACTIVE:
            context.status = SessionStatus.ESCALATED
            self.stats.record_session_escalated()
            log.warning(
                "session_escalated",
                reason=context.user_inputs.get(AuditKey.ESCALATION_REASON.value),
            )

    def _degraded_output(self, context: SessionContext, error: BaseException) -> Output:
        if isinstance(error, asyncio.TimeoutError):
            detail = f"Turn timed out after {self.turn_timeout}s"
        else:
            detail = getattr(error, "message", None) or str(error) or type(error).__name__

        self.stats.record_turn_error()
        context.agent_memory.failed_attempts.append(detail)
        context.touch()

        log.error(
            "turn_failed",
            error_type=type(error).__name__,
            error=detail,
            exc_info=not isinstance(error, asyncio.TimeoutError),
        )

        return Output(
            message=self.config.session.fallback_message,
            session_id=context.session_id,
            session_status=context.status,
            agent_reasoning=f"Error: {detail}",
        )

    # ==========================================================================
    # Read accessors
    # ==========================================================================

    def _require_session(self, session_id: str) -> SessionContext:
        context = self.store.get(session_id)
        if context is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return context

    def get_session(self, session_id: str) -> Optional[SessionContext]:
        return self.store.get(session_id)

    def get_active_sessions(self) -> List[SessionContext]:
        return self.store.list_active()

    def get_user_sessions(self, user_id: str) -> List[SessionContext]:
        return self.store.list_for_user(user_id)

    def get_stats(self) -> Stats:
        return self.stats.get_stats(self.store, strategies_registered=len(self.registry))

    def get_strategy_performance(self, strategy_name: str) -> StrategyPerformance:
        return self.stats.get_strategy_performance(strategy_name, self.store)

    def get_session_analytics(self, session_id: str) -> Optional[SessionAnalytics]:
        """Analytics for one session, or None if it does not exist."""
        context = self.store.get(session_id)
        if context is None:
            return None
        return self.stats.get_session_analytics(context)
