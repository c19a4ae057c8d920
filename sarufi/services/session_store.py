"""
In-process session store.

Owns every SessionContext, keyed by session id, with a secondary index by
user id. State lives for the lifetime of the process.

Plain reads and writes never await, so they are atomic under asyncio. The
per-session and per-user locks serialize multi-step operations that await
in the middle (a turn, or the end-old/create-new sequence of a start).
"""

import asyncio
from typing import Dict, List, Optional

import structlog

from sarufi.domain.models.session import SessionContext, SessionStatus

log = structlog.get_logger(__name__)


class SessionStore:
    """Session contexts plus the user index and locks."""

    def __init__(self):
        self._sessions: Dict[str, SessionContext] = {}
        self._by_user: Dict[str, List[str]] = {}
        self._session_locks: Dict[str, asyncio.Lock] = {}
        self._user_locks: Dict[str, asyncio.Lock] = {}

    def add(self, context: SessionContext) -> None:
        self._sessions[context.session_id] = context
        self._by_user.setdefault(context.user_id, []).append(context.session_id)
        log.debug(
            "session_stored",
            session_id=context.session_id,
            user_id=context.user_id,
        )

    def get(self, session_id: str) -> Optional[SessionContext]:
        return self._sessions.get(session_id)

    def find_active_for_user(self, user_id: str) -> Optional[SessionContext]:
        """The user's active session, if any."""
        for session_id in self._by_user.get(user_id, []):
            context = self._sessions.get(session_id)
            if context is not None and context.status == SessionStatus.ACTIVE:
                return context
        return None

    def list_for_user(self, user_id: str) -> List[SessionContext]:
        """All sessions of a user in creation order."""
        return [
            self._sessions[sid]
            for sid in self._by_user.get(user_id, [])
            if sid in self._sessions
        ]

    def list_all(self) -> List[SessionContext]:
        return list(self._sessions.values())

    def list_active(self) -> List[SessionContext]:
        return [c for c in self._sessions.values() if c.status == SessionStatus.ACTIVE]

    def list_for_strategy(self, strategy_name: str) -> List[SessionContext]:
        return [c for c in self._sessions.values() if c.strategy_name == strategy_name]

    def session_lock(self, session_id: str) -> asyncio.Lock:
        return self._session_locks.setdefault(session_id, asyncio.Lock())

    def user_lock(self, user_id: str) -> asyncio.Lock:
        return self._user_locks.setdefault(user_id, asyncio.Lock())

    def clear(self) -> None:
        """Drop every session (process teardown and tests)."""
        self._sessions.clear()
        self._by_user.clear()
        self._session_locks.clear()
        self._user_locks.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
