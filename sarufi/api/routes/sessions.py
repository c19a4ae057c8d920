"""
Session API routes.

Endpoints for session lifecycle and turn processing.
"""

from typing import Optional

from fastapi import APIRouter, Query, status
import structlog

from sarufi.api.dependencies import OrchestratorDep
from sarufi.api.schemas import (
    EndSessionResponse,
    MessageRequest,
    SessionListResponse,
    SessionSummary,
    StartSessionRequest,
)
from sarufi.core.exceptions import SessionNotFoundError
from sarufi.domain.models.session import Output, Session, SessionContext, SessionStatus
from sarufi.domain.models.stats import SessionAnalytics

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ============ SESSION LIFECYCLE ============


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
async def start_session(request: StartSessionRequest, orchestrator: OrchestratorDep):
    """Start a session and return the opening message.

    Any active session of the same user is completed first.
    """
    return await orchestrator.start_session(
        user_id=request.user_id,
        strategy_name=request.strategy_name,
        initial_context=request.initial_context,
    )


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    orchestrator: OrchestratorDep,
    user_id: Optional[str] = Query(default=None, description="Only this user's sessions"),
    active_only: bool = Query(default=False),
):
    if user_id is not None:
        sessions = orchestrator.get_user_sessions(user_id)
        if active_only:
            sessions = [s for s in sessions if s.status == SessionStatus.ACTIVE]
    elif active_only:
        sessions = orchestrator.get_active_sessions()
    else:
        sessions = orchestrator.store.list_all()

    return SessionListResponse(
        sessions=[SessionSummary.from_context(s) for s in sessions],
        total=len(sessions),
    )


@router.get("/{session_id}", response_model=SessionContext)
async def get_session(session_id: str, orchestrator: OrchestratorDep):
    context = orchestrator.get_session(session_id)
    if context is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    return context


@router.delete("/{session_id}", response_model=EndSessionResponse)
async def end_session(session_id: str, orchestrator: OrchestratorDep):
    """End a session. `ended` is False when it was already completed or escalated."""
    context = orchestrator.get_session(session_id)
    if context is None:
        raise SessionNotFoundError(f"Session {session_id} not found")

    ended = await orchestrator.end_session(session_id)
    return EndSessionResponse(session_id=session_id, ended=ended, status=context.status)


# ============ TURN PROCESSING ============


@router.post("/{session_id}/messages", response_model=Output)
async def send_message(
    session_id: str,
    request: MessageRequest,
    orchestrator: OrchestratorDep,
):
    """Process one user message.

    A failed turn still returns 200 with the fallback message and the error
    detail in agent_reasoning; the session stays active.
    """
    return await orchestrator.send_message(session_id, request.text)


# ============ ANALYTICS ============


@router.get("/{session_id}/analytics", response_model=SessionAnalytics)
async def get_session_analytics(session_id: str, orchestrator: OrchestratorDep):
    analytics = orchestrator.get_session_analytics(session_id)
    if analytics is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    return analytics
