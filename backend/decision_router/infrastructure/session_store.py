"""Session Store: in-memory conversation sessions with one lock per session.

Invariants:
    - get() returns the stored session object or None
    - A lock exists only for a saved session; save() creates it and lock()
      never adds entries, so unknown ids cannot grow the lock map
    - lock(session_id) always returns the same asyncio.Lock for one id, so a
      whole answer cycle can be serialized per session

Design Decisions:
    - In-memory dict, not DB/Redis: single-process uvicorn; the routing core
      persists nothing
"""

import asyncio
import logging

from decision_router.core.errors import SessionNotFoundError
from decision_router.core.session_state import ConversationSession

logger = logging.getLogger(__name__)


class InMemorySessionStore:
    def __init__(self):
        self._sessions: dict[str, ConversationSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def get(self, session_id: str) -> ConversationSession | None:
        return self._sessions.get(session_id)

    async def save(self, session: ConversationSession) -> None:
        self._sessions[session.session_id] = session
        self._locks.setdefault(session.session_id, asyncio.Lock())
        logger.debug("Session saved", extra={"session_id": session.session_id})

    async def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            raise SessionNotFoundError(session_id)
        return lock
