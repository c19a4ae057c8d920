"""
Agent: one strategy's decision loop.

Each turn:
1. Compose the system prompt from the strategy and session context
2. Send the transcript (plus the turn prompt) and tools to the oracle
3. Run domain tools the oracle asks for and feed results back
4. Stop at the first decision tool call, at most `max_steps` rounds
5. Validate the call into a Decision and interpret it

The oracle client is created on first use, so a strategy naming a provider
without a configured API key registers fine and only fails at its first turn.
"""

from typing import Callable, Dict, List, Optional, Sequence

import structlog
from pydantic import ValidationError as PydanticValidationError

from sarufi.core.config import OracleConfig, orchestrator_config
from sarufi.core.exceptions import (
    ConfigurationError,
    DecisionMissingError,
    LLMResponseParseError,
)
from sarufi.domain.models.agent_response import AgentResponse
from sarufi.domain.models.decision import Decision
from sarufi.domain.models.session import MessageRole, SessionContext
from sarufi.domain.models.stats import SessionInsights
from sarufi.domain.models.strategy import Strategy
from sarufi.llm.client import (
    LLMClient,
    OracleMessage,
    ToolCall,
    get_llm_client_for_strategy,
)
from sarufi.llm.prompts.agent import compose_system_prompt
from sarufi.llm.tools import (
    DECISION_TOOL_NAME,
    Tool,
    assemble_tools,
    serialize_tool_output,
)
from sarufi.services.decision_interpreter import (
    DecisionInterpreter,
    get_session_insights,
)

log = structlog.get_logger(__name__)

ClientFactory = Callable[[Strategy], LLMClient]


def build_oracle_messages(context: SessionContext, prompt: str) -> List[OracleMessage]:
    """Transcript in order, plus the turn prompt unless it is already last."""
    messages = [
        OracleMessage(role=msg.role.value, content=msg.content)
        for msg in context.messages
        if msg.role in (MessageRole.USER, MessageRole.ASSISTANT)
    ]
    last = context.messages[-1] if context.messages else None
    if not (last and last.role == MessageRole.USER and last.content == prompt):
        messages.append(OracleMessage(role="user", content=prompt))
    return messages


class Agent:
    """Decision loop bound to a single strategy."""

    def __init__(
        self,
        strategy: Strategy,
        client_factory: ClientFactory = get_llm_client_for_strategy,
        oracle_config: Optional[OracleConfig] = None,
    ):
        self.strategy = strategy
        self.interpreter = DecisionInterpreter(strategy.name)
        self.oracle_config = oracle_config or orchestrator_config.oracle
        self._client_factory = client_factory
        self._client: Optional[LLMClient] = None

    @property
    def client(self) -> LLMClient:
        """Oracle client, created on first access.

        Raises:
            ConfigurationError: If the provider's API key is missing
        """
        if self._client is None:
            try:
                self._client = self._client_factory(self.strategy)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        return self._client

    async def process_turn(
        self,
        prompt: str,
        context: SessionContext,
        tools: Optional[Sequence[Tool]] = None,
    ) -> AgentResponse:
        """
        Run one turn and interpret the resulting decision.

        Args:
            prompt: Turn prompt (user text or the session start marker)
            context: Session context; not mutated here
            tools: Optional domain tools for this turn

        Returns:
            AgentResponse for the orchestrator to apply

        Raises:
            DecisionMissingError: No decision within max_steps rounds
            LLMResponseParseError: Decision arguments failed validation
            LLMError: Oracle transport failures
            ConfigurationError: Oracle client could not be created
        """
        decision = await self.decide(prompt, context, tools)
        return self.interpreter.interpret(decision, prompt, context)

    async def decide(
        self,
        prompt: str,
        context: SessionContext,
        tools: Optional[Sequence[Tool]] = None,
    ) -> Decision:
        system = compose_system_prompt(self.strategy, context)
        messages = build_oracle_messages(context, prompt)
        tool_list = assemble_tools(tools)
        tools_by_name = {t.name: t for t in tool_list}
        max_steps = self.oracle_config.max_steps

        for step in range(1, max_steps + 1):
            response = await self.client.generate(
                system=system,
                messages=messages,
                tools=tool_list,
                tool_choice="required",
                temperature=self.oracle_config.temperature,
                max_tokens=self.oracle_config.max_tokens,
                timeout=self.oracle_config.timeout,
            )

            decision_call = next(
                (c for c in response.tool_calls if c.name == DECISION_TOOL_NAME),
                None,
            )
            if decision_call is not None:
                log.debug(
                    "decision_received",
                    strategy=self.strategy.name,
                    step=step,
                    ignored_calls=len(response.tool_calls) - 1,
                )
                return self._parse_decision(decision_call)

            if not response.tool_calls:
                log.warning(
                    "oracle_returned_no_tool_calls",
                    strategy=self.strategy.name,
                    step=step,
                )
                break

            messages.append(
                OracleMessage(
                    role="assistant",
                    content=response.content,
                    tool_calls=list(response.tool_calls),
                )
            )
            for call in response.tool_calls:
                messages.append(await self._run_tool(tools_by_name, call))

        raise DecisionMissingError(
            f"Oracle produced no '{DECISION_TOOL_NAME}' call within {max_steps} steps"
        )

    def _parse_decision(self, call: ToolCall) -> Decision:
        try:
            return Decision.model_validate(call.arguments)
        except PydanticValidationError as e:
            log.warning(
                "decision_validation_failed",
                strategy=self.strategy.name,
                error_count=e.error_count(),
            )
            raise LLMResponseParseError(f"Malformed decision payload: {e}") from e

    async def _run_tool(self, tools_by_name: Dict[str, Tool], call: ToolCall) -> OracleMessage:
        """Execute one domain tool call; failures go back to the oracle as errors."""
        tool = tools_by_name.get(call.name)
        if tool is None or tool.execute is None:
            log.warning("unknown_tool_requested", tool=call.name)
            return OracleMessage(
                role="tool",
                content=f"Unknown tool: {call.name}",
                tool_call_id=call.id,
                name=call.name,
                is_error=True,
            )

        try:
            output = await tool.execute(call.arguments)
        except Exception as e:
            log.warning("tool_execution_failed", tool=call.name, error=str(e), exc_info=True)
            return OracleMessage(
                role="tool",
                content=f"Tool '{call.name}' failed: {e}",
                tool_call_id=call.id,
                name=call.name,
                is_error=True,
            )

        log.debug("tool_executed", tool=call.name)
        return OracleMessage(
            role="tool",
            content=serialize_tool_output(output),
            tool_call_id=call.id,
            name=call.name,
        )

    def get_session_insights(self, context: SessionContext) -> SessionInsights:
        return get_session_insights(context)
