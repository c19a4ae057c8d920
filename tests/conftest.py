"""
Shared test fixtures.

The oracle is replaced by FakeLLMClient: tests queue the responses it
returns round by round, and inspect the calls it received.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from sarufi.core.config import OrchestratorConfig
from sarufi.domain.models.strategy import Strategy
from sarufi.llm.client import LLMClient, LLMResponse, OracleMessage, ToolCall
from sarufi.llm.tools import DECISION_TOOL_NAME
from sarufi.services.orchestrator import SessionOrchestrator


def make_decision(
    message: str = "Hi! What kind of shoes are you looking for?",
    next_action: str = "ask_discovery_question",
    reasoning: str = "Need to learn the use case before recommending",
    confidence: float = 0.9,
    relevant_guidelines: Optional[List[str]] = None,
    opportunities: Optional[List[str]] = None,
    risk_factors: Optional[List[str]] = None,
    session_stage: str = "discovery",
    user_sentiment: str = "positive",
    should_escalate: bool = False,
    escalation_reason: Optional[str] = None,
    context_updates: Optional[Dict[str, Any]] = None,
    next_goal: str = "discover_use_case",
    goal_progress: str = "in_progress",
) -> Dict[str, Any]:
    """Decision tool arguments as the oracle would send them."""
    return {
        "strategy_analysis": {
            "current_goal": "initial_engagement",
            "goal_progress": goal_progress,
            "situation_assessment": "Customer opened the conversation",
            "relevant_guidelines": (
                ["Greet warmly and ask how you can help"]
                if relevant_guidelines is None
                else relevant_guidelines
            ),
            "opportunities": ["new customer"] if opportunities is None else opportunities,
            "risk_factors": [] if risk_factors is None else risk_factors,
        },
        "flow_decision": {
            "next_action": next_action,
            "reasoning": reasoning,
            "confidence": confidence,
            "urgency": "medium",
            "backup_plan": "Offer popular running shoes",
        },
        "action_execution": {
            "message": message,
            "message_intent": "discover the use case",
            "expected_user_response": "describe_activity",
            "context_updates": context_updates or {},
            "next_goal": next_goal,
        },
        "meta": {
            "session_stage": session_stage,
            "user_sentiment": user_sentiment,
            "should_escalate": should_escalate,
            "escalation_reason": escalation_reason,
        },
    }


class FakeLLMClient(LLMClient):
    """Scripted oracle.

    Queued items are returned (or raised, for exceptions) one per round.
    When the queue is empty every round answers with a default decision.
    """

    provider = "fake"
    model = "fake-model"

    def __init__(self):
        self.responses: List[Union[LLMResponse, BaseException]] = []
        self.calls: List[Dict[str, Any]] = []
        self._call_counter = 0

    def _next_id(self) -> str:
        self._call_counter += 1
        return f"call_{self._call_counter}"

    def queue_decision(self, **overrides) -> Dict[str, Any]:
        arguments = make_decision(**overrides)
        self.queue_raw_decision(arguments)
        return arguments

    def queue_raw_decision(self, arguments: Dict[str, Any]) -> None:
        self.responses.append(
            LLMResponse(
                content="",
                model=self.model,
                tool_calls=[ToolCall(id=self._next_id(), name=DECISION_TOOL_NAME, arguments=arguments)],
            )
        )

    def queue_tool_call(self, name: str, arguments: Dict[str, Any]) -> None:
        self.responses.append(
            LLMResponse(
                content="",
                model=self.model,
                tool_calls=[ToolCall(id=self._next_id(), name=name, arguments=arguments)],
            )
        )

    def queue_text(self, content: str) -> None:
        self.responses.append(LLMResponse(content=content, model=self.model))

    def queue_error(self, error: BaseException) -> None:
        self.responses.append(error)

    async def generate(
        self,
        system: str,
        messages: Sequence[OracleMessage],
        tools: Sequence[Any],
        tool_choice: str = "required",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        self.calls.append(
            {
                "system": system,
                "messages": list(messages),
                "tools": [t.name for t in tools],
                "tool_choice": tool_choice,
            }
        )
        if not self.responses:
            self.queue_decision()
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def decision_args():
    """Factory for decision tool arguments."""
    return make_decision


@pytest.fixture
def fake_client():
    return FakeLLMClient()


@pytest.fixture
def strategy_data() -> Dict[str, Any]:
    return {
        "name": "shoe_sales",
        "domain": "e-commerce",
        "primary_goal": "Help customers find the right shoes",
        "secondary_goals": ["Understand the use case", "Confirm size"],
        "personality": {
            "tone": "friendly",
            "style": "consultative",
            "pace": "adaptive",
        },
        "guidelines": {
            "must_do": ["Greet warmly and ask how you can help"],
            "must_not_do": ["Recommend products that were not looked up"],
            "prefer_to_do": ["Ask follow-up questions"],
            "avoid_doing": ["Listing too many products"],
        },
        "knowledge": {
            "key_info": ["Free shipping over $100"],
            "common_questions": ["How long does shipping take?"],
            "escalation_triggers": ["Customer asks for a human"],
        },
    }


@pytest.fixture
def strategy(strategy_data) -> Strategy:
    return Strategy(**strategy_data)


@pytest.fixture
def orchestrator(fake_client, strategy) -> SessionOrchestrator:
    """Orchestrator with one strategy, backed by the fake oracle."""
    orchestrator = SessionOrchestrator(
        config=OrchestratorConfig(),
        client_factory=lambda s: fake_client,
        turn_timeout=5.0,
    )
    orchestrator.register_strategy(strategy)
    return orchestrator
