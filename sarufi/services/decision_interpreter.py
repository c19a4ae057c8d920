"""
Decision interpretation.

Maps the oracle's structured Decision, the prompt that produced it and the
prior SessionContext into an AgentResponse. Interpretation is pure: the
context is only read, never mutated.
"""

import math
from typing import Any, Dict, Tuple

import structlog

from sarufi.domain.models.agent_response import (
    AgentResponse,
    DecisionQuality,
    ResponseMeta,
)
from sarufi.domain.models.context_keys import AuditKey
from sarufi.domain.models.decision import Decision
from sarufi.domain.models.session import SessionContext, utc_now
from sarufi.domain.models.stats import SessionInsights

log = structlog.get_logger(__name__)

REASONING_SEPARATOR = " | "

# Quality weights in tenths of a point; tier thresholds likewise
_GUIDELINE_POINTS = 3
_CONFIDENCE_POINTS = 3
_SIGNAL_POINTS = 2
_REASONING_POINTS = 2
_CONFIDENCE_THRESHOLD = 0.7
_REASONING_MIN_LENGTH = 20
_HIGH_TIER_POINTS = 8
_MEDIUM_TIER_POINTS = 5


def format_reasoning(decision: Decision) -> str:
    """Fixed-order reasoning trace: analysis, decision, action, confidence, stage."""
    # Halves round up (12.5 -> 13), not to even
    confidence_pct = math.floor(decision.flow_decision.confidence * 100 + 0.5)
    return REASONING_SEPARATOR.join(
        [
            f"Analysis: {decision.strategy_analysis.situation_assessment}",
            f"Decision: {decision.flow_decision.reasoning}",
            f"Action: {decision.action_execution.message_intent}",
            f"Confidence: {confidence_pct}%",
            f"Stage: {decision.meta.session_stage.value}",
        ]
    )


def evaluate_decision_quality(decision: Decision) -> Tuple[float, DecisionQuality]:
    """
    Score a decision and map the score to a tier.

    +0.3 if any relevant guideline was cited, +0.3 if confidence > 0.7,
    +0.2 if any opportunity or risk was identified, +0.2 if the reasoning
    text is longer than 20 characters. >= 0.8 is high, >= 0.5 medium.

    Returns:
        (score in [0, 1], tier)
    """
    analysis = decision.strategy_analysis
    flow = decision.flow_decision

    points = 0
    if analysis.relevant_guidelines:
        points += _GUIDELINE_POINTS
    if flow.confidence > _CONFIDENCE_THRESHOLD:
        points += _CONFIDENCE_POINTS
    if analysis.opportunities or analysis.risk_factors:
        points += _SIGNAL_POINTS
    if len(flow.reasoning) > _REASONING_MIN_LENGTH:
        points += _REASONING_POINTS

    points = max(0, min(points, 10))
    score = points / 10

    if points >= _HIGH_TIER_POINTS:
        return score, "high"
    if points >= _MEDIUM_TIER_POINTS:
        return score, "medium"
    return score, "low"


def build_context_updates(
    decision: Decision, prompt: str, context: SessionContext
) -> Dict[str, Any]:
    """
    Context delta for one decision.

    The decision's own context_updates go in first; the derived audit keys
    are written after them and always win on a key collision.
    """
    analysis = decision.strategy_analysis
    flow = decision.flow_decision
    action = decision.action_execution
    meta = decision.meta
    timestamp = utc_now().isoformat()

    updates: Dict[str, Any] = dict(action.context_updates)
    updates.update(
        {
            AuditKey.LAST_DECISION.value: decision.model_dump(mode="json"),
            AuditKey.LAST_USER_MESSAGE.value: prompt,
            AuditKey.SESSION_STAGE.value: meta.session_stage.value,
            AuditKey.USER_SENTIMENT.value: meta.user_sentiment.value,
            AuditKey.GUIDELINES_CONSIDERED.value: list(analysis.relevant_guidelines),
            AuditKey.OPPORTUNITIES_IDENTIFIED.value: list(analysis.opportunities),
            AuditKey.RISKS_IDENTIFIED.value: list(analysis.risk_factors),
            AuditKey.PREVIOUS_GOAL.value: context.current_goal,
            AuditKey.CURRENT_GOAL.value: action.next_goal,
            AuditKey.GOAL_PROGRESS.value: analysis.goal_progress.value,
            AuditKey.DECISION_CONFIDENCE.value: flow.confidence,
            AuditKey.BACKUP_PLAN.value: flow.backup_plan,
            AuditKey.ESCALATION_NEEDED.value: meta.should_escalate,
            AuditKey.ESCALATION_REASON.value: meta.escalation_reason,
            AuditKey.LAST_DECISION_TIME.value: timestamp,
            AuditKey.UPDATED_AT.value: timestamp,
        }
    )
    return updates


class DecisionInterpreter:
    """Interprets decisions for one strategy.

    One instance is allocated per registered strategy name.
    """

    def __init__(self, strategy_name: str):
        self.strategy_name = strategy_name

    def interpret(
        self, decision: Decision, prompt: str, context: SessionContext
    ) -> AgentResponse:
        """
        Map a decision to an AgentResponse.

        Args:
            decision: Validated oracle decision
            prompt: The turn prompt the decision answers
            context: Session context before this turn's delta

        Returns:
            AgentResponse carrying message, reasoning trace and context delta
        """
        score, quality = evaluate_decision_quality(decision)

        response = AgentResponse(
            message=decision.action_execution.message,
            action_taken=decision.flow_decision.next_action.value,
            reasoning=format_reasoning(decision),
            confidence=decision.flow_decision.confidence,
            context_updates=build_context_updates(decision, prompt, context),
            suggested_next_user_action=decision.action_execution.expected_user_response,
            meta=ResponseMeta(
                session_stage=decision.meta.session_stage.value,
                user_sentiment=decision.meta.user_sentiment.value,
                should_escalate=decision.meta.should_escalate,
                decision_quality=quality,
            ),
        )

        log.debug(
            "decision_interpreted",
            strategy=self.strategy_name,
            action=response.action_taken,
            confidence=response.confidence,
            quality_score=score,
            decision_quality=quality,
            should_escalate=response.meta.should_escalate,
        )
        return response


def get_session_insights(context: SessionContext) -> SessionInsights:
    """Audit-derived insights for a session."""
    inputs = context.user_inputs
    guidelines = inputs.get(AuditKey.GUIDELINES_CONSIDERED.value) or []
    return SessionInsights(
        stage=inputs.get(AuditKey.SESSION_STAGE.value) or "unknown",
        sentiment=inputs.get(AuditKey.USER_SENTIMENT.value) or "unknown",
        goal_progress=inputs.get(AuditKey.GOAL_PROGRESS.value) or "unknown",
        guidelines_adherence=len(guidelines),
        decision_quality=inputs.get(AuditKey.DECISION_QUALITY.value) or "unknown",
        escalation_needed=bool(inputs.get(AuditKey.ESCALATION_NEEDED.value, False)),
    )
