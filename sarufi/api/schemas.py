"""
API request/response schemas.

Pydantic models for API validation and serialization. Domain models
(Strategy, Session, SessionContext, Output, Stats, ...) are returned
directly where their shape is already the public one.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from sarufi.domain.models.session import SessionContext, SessionStatus
from sarufi.domain.models.strategy import Strategy


# ============ STRATEGY SCHEMAS ============


class StrategySummary(BaseModel):
    """Registered strategy, without rule sets and knowledge."""

    name: str
    domain: str
    primary_goal: str
    llm_provider: Optional[str] = None
    model: Optional[str] = None

    @classmethod
    def from_strategy(cls, strategy: Strategy) -> "StrategySummary":
        return cls(
            name=strategy.name,
            domain=strategy.domain,
            primary_goal=strategy.primary_goal,
            llm_provider=strategy.llm_provider,
            model=strategy.model,
        )


class StrategyListResponse(BaseModel):
    strategies: List[StrategySummary]
    total: int


# ============ SESSION SCHEMAS ============


class StartSessionRequest(BaseModel):
    """Request to start a session."""

    user_id: str = Field(..., min_length=1)
    strategy_name: str = Field(..., min_length=1)
    initial_context: Dict[str, Any] = Field(
        default_factory=dict, description="Business facts to seed user_inputs with"
    )


class MessageRequest(BaseModel):
    """Request to process one user message."""

    text: str = Field(..., min_length=1, max_length=5000, description="User's message text")


class SessionSummary(BaseModel):
    """Session list entry."""

    session_id: str
    user_id: str
    strategy_name: str
    status: SessionStatus
    current_goal: str
    messages_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_context(cls, context: SessionContext) -> "SessionSummary":
        return cls(
            session_id=context.session_id,
            user_id=context.user_id,
            strategy_name=context.strategy_name,
            status=context.status,
            current_goal=context.current_goal,
            messages_count=context.messages_count,
            created_at=context.created_at,
            updated_at=context.updated_at,
        )


class SessionListResponse(BaseModel):
    sessions: List[SessionSummary]
    total: int


class EndSessionResponse(BaseModel):
    """Result of ending a session; ended is False if it was already terminal."""

    session_id: str
    ended: bool
    status: SessionStatus
