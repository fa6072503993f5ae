"""Authentication session storage shared by every tool server.

This module keeps the process-wide mapping from authentication session id to
session record. Nothing is persisted; all sessions disappear on restart.
Expired sessions are swept opportunistically when new sessions are created,
so a stale record may outlive its TTL until the next creation.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional


@dataclass
class AuthSession:
    """Authentication state for one demo customer session."""

    session_id: str
    created_at: float
    authenticated: bool = False
    identity: Optional[Dict[str, Any]] = None

    def is_expired(self, max_age: float, now: Optional[float] = None) -> bool:
        """Check if the session is older than ``max_age`` seconds."""
        now = time.time() if now is None else now
        return now - self.created_at > max_age

    def to_dict(self) -> Dict[str, Any]:
        """Convert session to dictionary for serialization."""
        return {
            'sessionId': self.session_id,
            'authenticated': self.authenticated,
            'identity': dict(self.identity) if self.identity else None,
            'createdAt': self.created_at,
        }


class SessionStore:
    """Concurrency-safe in-memory store of authentication sessions."""

    def __init__(self, session_ttl: float = 600, cleanup_interval: float = 60):
        """Initialize session store.

        Args:
            session_ttl: Maximum session age in seconds (default: 10 minutes)
            cleanup_interval: Minimum seconds between opportunistic sweeps
        """
        self.session_ttl = session_ttl
        self.cleanup_interval = cleanup_interval
        self.sessions: Dict[str, AuthSession] = {}
        self.lock = Lock()
        self.logger = logging.getLogger(__name__)
        self.last_cleanup = time.time()
        self._timers: Dict[str, asyncio.TimerHandle] = {}

        self.logger.info(f"SessionStore initialized with ttl={session_ttl}s")

    def generate_session_id(self) -> str:
        """Generate an opaque session id of the form ``sess_<hex>``."""
        return "sess_" + secrets.token_hex(8)

    def create(self) -> AuthSession:
        """Create a new unauthenticated session.

        Returns:
            New session object
        """
        session = AuthSession(session_id=self.generate_session_id(), created_at=time.time())

        with self.lock:
            self.sessions[session.session_id] = session
            self.logger.info(f"Created session {session.session_id[:8]}...")

        self._maybe_sweep()
        return session

    def ensure(self, session_id: str) -> AuthSession:
        """Return the session with ``session_id``, creating it if unknown.

        Only the login form endpoint relies on this; every other caller
        treats an unknown id as not found.
        """
        with self.lock:
            session = self.sessions.get(session_id)
            if session is None or session.is_expired(self.session_ttl):
                session = AuthSession(session_id=session_id, created_at=time.time())
                self.sessions[session_id] = session
                self.logger.info(f"Lazily created session {session_id[:8]}...")
            return session

    def get(self, session_id: Optional[str]) -> Optional[AuthSession]:
        """Retrieve a session by id.

        Args:
            session_id: Session identifier

        Returns:
            Session object if found and not expired, None otherwise
        """
        if not session_id:
            return None

        with self.lock:
            session = self.sessions.get(session_id)
            if not session:
                self.logger.debug(f"Session {session_id[:8]}... not found")
                return None

            if session.is_expired(self.session_ttl):
                self.logger.info(f"Session {session_id[:8]}... expired, removing")
                del self.sessions[session_id]
                self._cancel_timer(session_id)
                return None

            return session

    def update(self, session_id: str,
               fn: Callable[[AuthSession], None]) -> Optional[AuthSession]:
        """Apply ``fn`` to the session while holding the store lock.

        Args:
            session_id: Session identifier
            fn: Callable mutating the session in place

        Returns:
            The mutated session, or None if the session does not exist
        """
        with self.lock:
            session = self.sessions.get(session_id)
            if session is None or session.is_expired(self.session_ttl):
                return None
            fn(session)
            return session

    def mark_authenticated(self, session_id: str,
                           identity: Dict[str, Any]) -> Optional[AuthSession]:
        """Mark a session as authenticated with the given identity.

        Raises:
            ValueError: If ``identity`` is empty
        """
        if not identity:
            raise ValueError("An authenticated session requires an identity")

        def _authenticate(session: AuthSession) -> None:
            session.identity = dict(identity)
            session.authenticated = True

        session = self.update(session_id, _authenticate)
        if session is not None:
            self.logger.info(f"Session {session_id[:8]}... authenticated as {identity.get('name')}")
        return session

    def delete(self, session_id: Optional[str]) -> bool:
        """Remove a session by id.

        Returns:
            True if session was removed, False if not found
        """
        if not session_id:
            return False

        with self.lock:
            self._cancel_timer(session_id)
            if session_id in self.sessions:
                del self.sessions[session_id]
                self.logger.info(f"Removed session {session_id[:8]}...")
                return True

        self.logger.debug(f"Session {session_id[:8]}... not found for removal")
        return False

    def schedule_authentication(self, session_id: str, delay: float,
                                identity: Dict[str, Any]) -> bool:
        """Authenticate ``session_id`` once after ``delay`` seconds.

        Must be called from a running event loop. The pending call is
        cancelled if the session is deleted first.

        Returns:
            True if the timer was scheduled, False if the session is unknown
        """
        loop = asyncio.get_running_loop()

        with self.lock:
            if session_id not in self.sessions:
                return False
            self._cancel_timer(session_id)
            self._timers[session_id] = loop.call_later(
                delay, self._fire_authentication, session_id, dict(identity)
            )

        self.logger.info(f"Scheduled auto-authentication for {session_id[:8]}... in {delay}s")
        return True

    def has_pending_authentication(self, session_id: str) -> bool:
        with self.lock:
            return session_id in self._timers

    def _fire_authentication(self, session_id: str, identity: Dict[str, Any]) -> None:
        with self.lock:
            self._timers.pop(session_id, None)
        if self.mark_authenticated(session_id, identity) is None:
            self.logger.debug(f"Auto-authentication skipped, {session_id[:8]}... is gone")

    def _cancel_timer(self, session_id: str) -> None:
        # Caller holds self.lock
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()

    def _maybe_sweep(self) -> None:
        """Sweep expired sessions if the cleanup interval has elapsed."""
        if time.time() - self.last_cleanup < self.cleanup_interval:
            return
        self.sweep_expired()

    def sweep_expired(self, max_age: Optional[float] = None) -> int:
        """Remove every session older than ``max_age`` (default: the TTL).

        Returns:
            Number of sessions removed
        """
        max_age = self.session_ttl if max_age is None else max_age
        now = time.time()

        with self.lock:
            expired = [
                session_id for session_id, session in self.sessions.items()
                if session.is_expired(max_age, now)
            ]
            for session_id in expired:
                del self.sessions[session_id]
                self._cancel_timer(session_id)
            self.last_cleanup = now

        if expired:
            self.logger.info(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    def count(self) -> int:
        """Get the current number of stored sessions."""
        with self.lock:
            return len(self.sessions)

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Get all live sessions (for debugging/monitoring)."""
        with self.lock:
            return {
                session_id: session.to_dict()
                for session_id, session in self.sessions.items()
                if not session.is_expired(self.session_ttl)
            }
