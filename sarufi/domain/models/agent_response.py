"""Agent response model: the interpreted outcome of one turn."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

DecisionQuality = Literal["high", "medium", "low"]


class ResponseMeta(BaseModel):
    """Stage, sentiment, escalation flag and derived quality tier."""

    session_stage: str
    user_sentiment: str
    should_escalate: bool
    decision_quality: DecisionQuality


class AgentResponse(BaseModel):
    """Output of the DecisionInterpreter.

    Attributes:
        reasoning: Fixed-order " | "-joined trace (analysis, decision, action,
            confidence, stage); parsed by downstream analytics
        context_updates: Delta to shallow-merge into SessionContext.user_inputs
    """

    message: str
    action_taken: str
    reasoning: str
    confidence: float
    context_updates: Dict[str, Any] = Field(default_factory=dict)
    suggested_next_user_action: Optional[str] = None
    meta: ResponseMeta
