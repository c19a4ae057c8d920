"""Domain models package."""

from .strategy import Strategy, Personality, Guidelines, Knowledge
from .decision import Decision
from .agent_response import AgentResponse, ResponseMeta
from .session import (
    SessionContext,
    SessionStatus,
    Session,
    Output,
    Message,
    MessageRole,
    UserProfile,
    AgentMemory,
)
from .stats import Stats, StrategyPerformance, SessionAnalytics, SessionInsights

__all__ = [
    "Strategy",
    "Personality",
    "Guidelines",
    "Knowledge",
    "Decision",
    "AgentResponse",
    "ResponseMeta",
    "SessionContext",
    "SessionStatus",
    "Session",
    "Output",
    "Message",
    "MessageRole",
    "UserProfile",
    "AgentMemory",
    "Stats",
    "StrategyPerformance",
    "SessionAnalytics",
    "SessionInsights",
]
