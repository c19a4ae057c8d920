"""Aggregate statistics models.

Stats are derived from lifecycle counters and the live session set; they
are never persisted independently of the sessions they summarize.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Stats(BaseModel):
    """Process-wide session statistics."""

    total_sessions: int = 0
    active_sessions: int = 0
    completed_sessions: int = 0
    escalated_sessions: int = 0
    average_session_length: float = Field(
        default=0.0, description="Messages processed per session started"
    )
    average_session_duration: float = Field(
        default=0.0, description="Seconds per completed session"
    )
    strategies_registered: int = 0
    total_messages_processed: int = 0
    error_count: int = 0


class StrategyPerformance(BaseModel):
    """Rollup over every session bound to one strategy name."""

    strategy_name: str
    total_sessions: int = 0
    completion_rate: float = 0.0
    escalation_rate: float = 0.0
    average_messages: float = 0.0
    performance_score: float = Field(default=0.0, ge=0.0, le=1.0)


class SessionInsights(BaseModel):
    """Audit-derived view of where a session stands."""

    stage: str = "unknown"
    sentiment: str = "unknown"
    goal_progress: str = "unknown"
    guidelines_adherence: int = 0
    decision_quality: str = "unknown"
    escalation_needed: bool = False


class SessionAnalytics(BaseModel):
    """Per-session analytics record."""

    session_id: str
    status: str
    duration: float = Field(description="Seconds between creation and last update")
    message_count: int
    current_stage: Optional[Any] = None
    user_sentiment: Optional[Any] = None
    goal_progress: Optional[Any] = None
    escalation_needed: Optional[Any] = None
    decision_quality: Optional[Any] = None
    insights: SessionInsights
    business_facts: Dict[str, Any] = Field(
        default_factory=dict, description="Non-audit user_inputs keys"
    )
