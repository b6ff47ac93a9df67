"""
Transcript Logger

Append-only write of every dialogue turn to the chat history table,
partitioned by chatId = userId#sessionId and ordered by timestamp.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from sparkpath_mentor.record_store import RecordStore, Tables
from sparkpath_mentor.session_state import DialogueSession, Role

logger = logging.getLogger(__name__)


class TranscriptLogger:
    """Writes chat turns; never updates or deletes them."""

    def __init__(self, store: RecordStore):
        self.store = store
        # Last timestamp issued per chatId, to keep ordering strict within a session
        self._last_timestamp: Dict[str, int] = {}

    def _next_timestamp(self, chat_id: str) -> int:
        now_ms = time.time_ns() // 1_000_000
        timestamp = max(now_ms, self._last_timestamp.get(chat_id, 0) + 1)
        self._last_timestamp[chat_id] = timestamp
        return timestamp

    async def append(
        self,
        session: DialogueSession,
        role: Role,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Persist one turn. Raises PersistenceFailure if the store write fails."""
        item = {
            "chatId": session.chat_id,
            "timestamp": self._next_timestamp(session.chat_id),
            "userId": session.user_id,
            "sessionId": session.session_id,
            "sessionType": session.kind.value,
            "role": role.value,
            "message": message,
            "metadata": metadata or {},
        }
        await self.store.put(Tables.CHAT_HISTORY, item)
        logger.debug(f"💾 [TranscriptLogger] {role.value} turn stored for {session.session_id}")
        return item

    def forget(self, chat_id: str):
        self._last_timestamp.pop(chat_id, None)

    def tracked_chat_ids(self) -> List[str]:
        return list(self._last_timestamp)

    async def history(self, user_id: str, session_id: str) -> List[Dict[str, Any]]:
        """All turns for one of the user's sessions, oldest first."""
        return await self.store.query(
            Tables.CHAT_HISTORY,
            {"chatId": f"{user_id}#{session_id}"},
            order_by="timestamp",
        )
