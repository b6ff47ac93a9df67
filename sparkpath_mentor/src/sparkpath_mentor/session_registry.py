"""
Session Registry

In-memory map from connection id to at most one live DialogueSession, plus
the per-connection lock that serialises event handling for that connection.

Process-local: sessions do not survive a restart (the chat history table
keeps every committed turn, but a half-finished dialogue cannot be resumed).
"""

import asyncio
import logging
from typing import Dict, List, Optional

from sparkpath_mentor.session_state import DialogueSession, SessionKind

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Live dialogue sessions keyed by connection id.

    Created once per process and injected into the engine.
    """

    def __init__(self):
        self._sessions: Dict[str, DialogueSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def create(
        self,
        connection_id: str,
        kind: SessionKind,
        user_id: str,
        course_id: Optional[str] = None,
    ) -> DialogueSession:
        """Start a fresh session, replacing any existing one for this connection."""
        if connection_id in self._sessions:
            logger.info(f"🔁 [SessionRegistry] Replacing existing session on {connection_id}")
        session = DialogueSession(user_id=user_id, kind=kind, course_id=course_id)
        self._sessions[connection_id] = session
        return session

    def get(self, connection_id: str) -> Optional[DialogueSession]:
        return self._sessions.get(connection_id)

    def delete(self, connection_id: str):
        self._sessions.pop(connection_id, None)

    def restore(self, connection_id: str, session: Optional[DialogueSession]):
        """Put back the session that was live before a failed start (or none)."""
        if session is None:
            self.delete(connection_id)
        else:
            self._sessions[connection_id] = session

    def lock_for(self, connection_id: str) -> asyncio.Lock:
        """Lock serialising this connection's events (waiters are served in arrival order)."""
        lock = self._locks.get(connection_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[connection_id] = lock
        return lock

    def release(self, connection_id: str):
        """Forget everything about a closed connection."""
        self.delete(connection_id)
        self._locks.pop(connection_id, None)

    def connection_ids(self) -> List[str]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._sessions
