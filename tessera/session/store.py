"""
Session Store - Login sessions held in memory.

LIFECYCLE:
1. Login succeeds -> create() issues an unguessable session id
2. Every score submission -> lookup()
3. Logout -> destroy() (idempotent)

Sessions are NOT persisted. A restart logs everyone out.
Expired sessions are indistinguishable from unknown ones.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import logging
import secrets
import threading
import time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """An authenticated user."""
    user_id: str
    name: str
    email: str


@dataclass(frozen=True)
class Session:
    """A login session."""
    session_id: str
    identity: Identity
    created_at: float


def short_id(session_id: str) -> str:
    """Truncated id for log lines."""
    return session_id[:12] + "..."


class SessionStore:
    """
    Lock-guarded map of session id -> Session.

    Usage:
        store = SessionStore(ttl_seconds=86400)
        session_id = store.create(identity)
        session = store.lookup(session_id)
        store.destroy(session_id)
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds or None
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, identity: Identity) -> str:
        """Open a session for identity and return its id. Expired sessions are dropped first."""
        now = self._clock()
        session_id = f"sesi_{secrets.token_urlsafe(32)}"
        session = Session(
            session_id=session_id,
            identity=identity,
            created_at=now,
        )
        with self._lock:
            self._purge_expired_locked(now)
            self._sessions[session_id] = session
        logger.info("Session created for %s: %s", identity.name, short_id(session_id))
        return session_id

    def lookup(self, session_id: str | None) -> Session | None:
        """Return the session, or None if unknown or expired."""
        if not session_id:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if self._is_expired(session, now):
                del self._sessions[session_id]
                logger.info("Session expired: %s", short_id(session_id))
                return None
            return session

    def destroy(self, session_id: str | None):
        """Remove a session. Unknown ids are ignored."""
        if not session_id:
            return
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info("Session destroyed: %s", short_id(session_id))

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            return self._purge_expired_locked(now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _purge_expired_locked(self, now: float) -> int:
        expired = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
        for session_id in expired:
            del self._sessions[session_id]
        return len(expired)

    def _is_expired(self, session: Session, now: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return now - session.created_at > self.ttl_seconds
