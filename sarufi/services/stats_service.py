"""
Statistics aggregation.

Process-wide counters are maintained incrementally by the orchestrator on
lifecycle events. Active sessions and per-strategy rollups are computed on
demand from the session store.
"""

from typing import Sequence

from sarufi.domain.models.context_keys import AuditKey, audit_view, business_view
from sarufi.domain.models.session import SessionContext, SessionStatus
from sarufi.domain.models.stats import SessionAnalytics, StrategyPerformance, Stats
from sarufi.services.decision_interpreter import get_session_insights
from sarufi.services.session_store import SessionStore

# Per-session performance contributions
COMPLETED_SCORE = 1.0
HIGH_QUALITY_SCORE = 0.5
POSITIVE_SENTIMENT_SCORE = 0.3
ESCALATED_PENALTY = 0.5


def session_performance_score(context: SessionContext) -> float:
    """Unclipped score contribution of one session."""
    score = 0.0
    if context.status == SessionStatus.COMPLETED:
        score += COMPLETED_SCORE
    if context.user_inputs.get(AuditKey.DECISION_QUALITY.value) == "high":
        score += HIGH_QUALITY_SCORE
    if context.user_inputs.get(AuditKey.USER_SENTIMENT.value) == "positive":
        score += POSITIVE_SENTIMENT_SCORE
    if context.status == SessionStatus.ESCALATED:
        score -= ESCALATED_PENALTY
    return score


def calculate_performance_score(sessions: Sequence[SessionContext]) -> float:
    """Mean session score clipped to [0, 1]; 0 for no sessions."""
    if not sessions:
        return 0.0
    average = sum(session_performance_score(c) for c in sessions) / len(sessions)
    return max(0.0, min(1.0, average))


class StatsAggregator:
    """Lifecycle counters and derived rollups."""

    def __init__(self):
        self.total_sessions = 0
        self.completed_sessions = 0
        self.escalated_sessions = 0
        self.total_messages = 0
        self.total_session_duration = 0.0
        self.error_count = 0

    # ==========================================================================
    # Lifecycle events
    # ==========================================================================

    def record_session_started(self) -> None:
        self.total_sessions += 1

    def record_user_message(self) -> None:
        self.total_messages += 1

    def record_session_completed(self, duration_seconds: float) -> None:
        self.completed_sessions += 1
        self.total_session_duration += max(duration_seconds, 0.0)

    def record_session_escalated(self) -> None:
        self.escalated_sessions += 1

    def record_turn_error(self) -> None:
        self.error_count += 1

    # ==========================================================================
    # Read side
    # ==========================================================================

    def get_stats(self, store: SessionStore, strategies_registered: int) -> Stats:
        average_duration = (
            self.total_session_duration / self.completed_sessions
            if self.completed_sessions > 0
            else 0.0
        )
        return Stats(
            total_sessions=self.total_sessions,
            active_sessions=len(store.list_active()),
            completed_sessions=self.completed_sessions,
            escalated_sessions=self.escalated_sessions,
            average_session_length=self.total_messages / max(self.total_sessions, 1),
            average_session_duration=average_duration,
            strategies_registered=strategies_registered,
            total_messages_processed=self.total_messages,
            error_count=self.error_count,
        )

    def get_strategy_performance(
        self, strategy_name: str, store: SessionStore
    ) -> StrategyPerformance:
        sessions = store.list_for_strategy(strategy_name)
        total = len(sessions)
        if total == 0:
            return StrategyPerformance(strategy_name=strategy_name)

        completed = sum(1 for c in sessions if c.status == SessionStatus.COMPLETED)
        escalated = sum(1 for c in sessions if c.status == SessionStatus.ESCALATED)
        return StrategyPerformance(
            strategy_name=strategy_name,
            total_sessions=total,
            completion_rate=completed / total,
            escalation_rate=escalated / total,
            average_messages=sum(c.messages_count for c in sessions) / total,
            performance_score=calculate_performance_score(sessions),
        )

    def get_session_analytics(self, context: SessionContext) -> SessionAnalytics:
        audit = audit_view(context.user_inputs)
        return SessionAnalytics(
            session_id=context.session_id,
            status=context.status.value,
            duration=context.duration_seconds,
            message_count=context.messages_count,
            current_stage=audit.get(AuditKey.SESSION_STAGE.value),
            user_sentiment=audit.get(AuditKey.USER_SENTIMENT.value),
            goal_progress=audit.get(AuditKey.GOAL_PROGRESS.value),
            escalation_needed=audit.get(AuditKey.ESCALATION_NEEDED.value),
            decision_quality=audit.get(AuditKey.DECISION_QUALITY.value),
            insights=get_session_insights(context),
            business_facts=business_view(context.user_inputs),
        )
