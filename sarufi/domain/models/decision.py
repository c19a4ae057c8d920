"""Decision schema produced by the oracle once per turn.

The oracle must answer every turn by calling the decision tool with an
argument matching `Decision`. The JSON schema of this model is the tool's
input schema, so field descriptions double as instructions to the model.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class GoalProgress(str, Enum):
    """Progress toward the current goal."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class NextAction(str, Enum):
    """Closed set of flow actions the oracle may choose."""

    ASK_DISCOVERY_QUESTION = "ask_discovery_question"
    PROVIDE_INFORMATION = "provide_information"
    HANDLE_OBJECTION = "handle_objection"
    BUILD_VALUE = "build_value"
    QUALIFY_FURTHER = "qualify_further"
    PROPOSE_NEXT_STEP = "propose_next_step"
    ESCALATE = "escalate"
    CLOSE_SESSION = "close_session"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SessionStage(str, Enum):
    """Conversation stage reported by the oracle."""

    OPENING = "opening"
    DISCOVERY = "discovery"
    QUALIFICATION = "qualification"
    PRESENTATION = "presentation"
    OBJECTION_HANDLING = "objection_handling"
    CLOSING = "closing"
    FOLLOW_UP = "follow_up"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    UNKNOWN = "unknown"


class StrategyAnalysis(BaseModel):
    """Situation analysis for the current turn."""

    current_goal: str = Field(description="What the agent is trying to achieve right now")
    goal_progress: GoalProgress = Field(description="Progress toward current goal")
    situation_assessment: str = Field(
        description="Agent's understanding of the current situation"
    )
    relevant_guidelines: List[str] = Field(
        default_factory=list, description="Which strategy rules apply to this situation"
    )
    opportunities: List[str] = Field(
        default_factory=list, description="Opportunities identified in this session"
    )
    risk_factors: List[str] = Field(
        default_factory=list, description="Potential risks or concerns to address"
    )


class FlowDecision(BaseModel):
    """The action chosen for this turn."""

    next_action: NextAction = Field(description="The specific action to take next")
    reasoning: str = Field(description="Why this action was chosen")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence level in this decision")
    urgency: Urgency = Field(description="How urgent this action is")
    backup_plan: str = Field(description="Alternative approach if this doesn't work")


class ActionExecution(BaseModel):
    """The message to send and the context changes it implies."""

    message: str = Field(description="The actual message to send to the user")
    message_intent: str = Field(description="What this message is trying to accomplish")
    expected_user_response: str = Field(
        description="What kind of response we expect from the user"
    )
    context_updates: Dict[str, Any] = Field(
        default_factory=dict, description="Updates to make to the session context"
    )
    next_goal: str = Field(description="What the goal should be after this interaction")


class DecisionMeta(BaseModel):
    """Stage, sentiment and escalation flags."""

    session_stage: SessionStage = Field(description="What stage of the session we're in")
    user_sentiment: Sentiment = Field(description="Detected user sentiment")
    should_escalate: bool = Field(description="Whether this session should be escalated")
    escalation_reason: Optional[str] = Field(
        default=None, description="Why escalation is needed if applicable"
    )


class Decision(BaseModel):
    """Structured output of one oracle turn."""

    strategy_analysis: StrategyAnalysis
    flow_decision: FlowDecision
    action_execution: ActionExecution
    meta: DecisionMeta
