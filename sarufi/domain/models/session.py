"""Session domain models for conversation lifecycle management.

Core Models:
    - SessionContext: Mutable record of one in-flight conversation
    - Session: Record returned by start_session (derived, not stored)
    - Output: Record returned by send_message (derived, not stored)

Session Lifecycle:
    1. start_session creates the context with status ACTIVE
    2. Each send_message appends messages and merges the context delta
    3. end_session moves ACTIVE -> COMPLETED
    4. An escalating decision moves ACTIVE -> ESCALATED
    PAUSED is reserved (ACTIVE <-> PAUSED) and not driven by the orchestrator.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_session_id() -> str:
    return f"sarufi_sess_{uuid4().hex[:16]}"


def generate_message_id() -> str:
    return f"msg_{uuid4().hex[:16]}"


class SessionStatus(str, Enum):
    """Lifecycle state of a session."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ESCALATED = "escalated"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.ESCALATED)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """One transcript entry. The transcript is append-only."""

    id: str = Field(default_factory=generate_message_id)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)


class UserProfile(BaseModel):
    """What has been inferred about the user, updated incrementally."""

    detected_intent: Optional[str] = None
    sentiment: Optional[Literal["positive", "neutral", "negative"]] = None
    expertise_level: Optional[Literal["beginner", "intermediate", "expert"]] = None


class AgentMemory(BaseModel):
    """Agent-side memory. All lists are append-only logs."""

    last_action: str = "session_started"
    reasoning_history: List[str] = Field(default_factory=list)
    failed_attempts: List[str] = Field(default_factory=list)
    successful_patterns: List[str] = Field(default_factory=list)


class SessionContext(BaseModel):
    """Mutable conversation record owned by the SessionStore.

    Attributes:
        user_inputs: Shallow key/value blackboard holding business facts and
            audit fields (see sarufi.domain.models.context_keys)
        messages_count: Number of transcript messages (user and assistant)
    """

    session_id: str = Field(default_factory=generate_session_id)
    user_id: str
    strategy_name: str
    status: SessionStatus = SessionStatus.ACTIVE
    current_goal: str = "initial_engagement"
    messages_count: int = 0
    user_inputs: Dict[str, Any] = Field(default_factory=dict)
    user_profile: UserProfile = Field(default_factory=UserProfile)
    messages: List[Message] = Field(default_factory=list)
    agent_memory: AgentMemory = Field(default_factory=AgentMemory)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def append_message(self, role: MessageRole, content: str) -> Message:
        """Append to the transcript and count the message."""
        message = Message(role=role, content=content)
        self.messages.append(message)
        self.messages_count += 1
        return message

    def touch(self) -> None:
        self.updated_at = utc_now()

    @property
    def duration_seconds(self) -> float:
        return (self.updated_at - self.created_at).total_seconds()


class Session(BaseModel):
    """Returned by start_session."""

    session_id: str
    status: Literal["started"] = "started"
    initial_message: str
    context: SessionContext


class Output(BaseModel):
    """Returned by send_message."""

    message: str
    session_id: str
    session_status: SessionStatus
    agent_reasoning: Optional[str] = None
    suggested_actions: Optional[List[str]] = None
