"""
Session storage for Tolge.
"""
import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from tolge.core.article import Session
from tolge.core.errors import SessionNotFoundError

# Configure logging
logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Generate a short random session identifier."""
    return secrets.token_hex(4)


class SessionStore(ABC):
    """
    Keyed storage for translation sessions.

    Implementations must provide per-key mutual exclusion through lock(), so
    that concurrent rounds against one session run one after another.
    """

    @abstractmethod
    async def get(self, session_id: str) -> Session:
        """
        Look up a session.

        Raises:
            SessionNotFoundError: if no session has this id
        """

    @abstractmethod
    async def put(self, session: Session) -> None:
        """Store or replace a session."""

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Remove a session; unknown ids are ignored."""

    @abstractmethod
    def lock(self, session_id: str):
        """Async context manager holding the lock for one session id."""


class InMemorySessionStore(SessionStore):
    """
    Process-local session store.

    Sessions do not survive a restart. A session awaiting an answer stays
    until it is answered or the process exits.
    """
    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def put(self, session: Session) -> None:
        self._sessions[session.id] = session
        logger.debug(f"Stored session {session.id} ({len(session.articles)} articles)")

    async def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.debug(f"Deleted session {session_id}")
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks[session_id]
        try:
            async with lock:
                yield
        finally:
            if session_id not in self._sessions and not lock.locked():
                self._locks.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
