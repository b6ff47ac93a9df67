"""
Record Store

Key-value document store used for assessments, progress, users and chat
history. `SupabaseRecordStore` is the production backend; `InMemoryRecordStore`
is the process-local fallback used when Supabase is not configured and in tests.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from sparkpath_mentor.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class Tables:
    """Logical table names (a prefix may be applied per deployment)."""
    USERS = "users"
    ASSESSMENTS = "assessments"
    COURSES = "courses"
    USER_PROGRESS = "user_progress"
    SUCCESS_STORIES = "success_stories"
    CHAT_HISTORY = "chat_history"
    PATHWAYS = "pathways"


# Primary key attributes per table
KEY_SCHEMA: Dict[str, Tuple[str, ...]] = {
    Tables.USERS: ("userId",),
    Tables.ASSESSMENTS: ("assessmentId",),
    Tables.COURSES: ("courseId",),
    Tables.USER_PROGRESS: ("progressId",),
    Tables.SUCCESS_STORIES: ("storyId",),
    Tables.CHAT_HISTORY: ("chatId", "timestamp"),
    Tables.PATHWAYS: ("pathwayId",),
}


class RecordStore(ABC):
    """get / put / update / query / scan over single-key records."""

    def __init__(self, table_prefix: str = ""):
        self.table_prefix = table_prefix

    def table_name(self, table: str) -> str:
        return f"{self.table_prefix}{table}"

    @abstractmethod
    async def get(self, table: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def put(self, table: str, item: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update(self, table: str, key: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        """Set `changes` on the record at `key`, creating it if absent. Returns the new record."""

    @abstractmethod
    async def query(
        self,
        table: str,
        key_condition: Dict[str, Any],
        index: Optional[str] = None,
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Equality match on `key_condition`, optionally through a secondary index."""

    @abstractmethod
    async def scan(self, table: str) -> List[Dict[str, Any]]:
        ...


class InMemoryRecordStore(RecordStore):
    """Dict-backed store. Records are copied in and out so callers never share state."""

    def __init__(self, table_prefix: str = ""):
        super().__init__(table_prefix)
        self._tables: Dict[str, Dict[Tuple, Dict[str, Any]]] = {}

    def _key_of(self, table: str, record: Dict[str, Any]) -> Tuple:
        try:
            return tuple(record[attr] for attr in KEY_SCHEMA.get(table, ("id",)))
        except KeyError as e:
            raise PersistenceFailure(f"Missing key attribute {e} for table {table}") from e

    def _rows(self, table: str) -> Dict[Tuple, Dict[str, Any]]:
        return self._tables.setdefault(self.table_name(table), {})

    async def get(self, table, key):
        row = self._rows(table).get(self._key_of(table, key))
        return copy.deepcopy(row) if row is not None else None

    async def put(self, table, item):
        self._rows(table)[self._key_of(table, item)] = copy.deepcopy(item)
        return copy.deepcopy(item)

    async def update(self, table, key, changes):
        rows = self._rows(table)
        row_key = self._key_of(table, key)
        row = rows.get(row_key) or dict(key)
        row.update(copy.deepcopy(changes))
        rows[row_key] = row
        return copy.deepcopy(row)

    async def query(self, table, key_condition, index=None, order_by=None):
        matches = [
            copy.deepcopy(row)
            for row in self._rows(table).values()
            if all(row.get(k) == v for k, v in key_condition.items())
        ]
        if order_by:
            matches.sort(key=lambda r: r.get(order_by))
        return matches

    async def scan(self, table):
        return [copy.deepcopy(row) for row in self._rows(table).values()]


class SupabaseRecordStore(RecordStore):
    """
    Record store backed by Supabase tables.

    The supabase client is synchronous, so each call runs in a worker thread
    to keep other connections' handlers moving.
    """

    def __init__(self, supabase_client, table_prefix: str = ""):
        super().__init__(table_prefix)
        self.supabase = supabase_client

    async def _run(self, operation: str, table: str, fn):
        try:
            return await asyncio.to_thread(fn)
        except PersistenceFailure:
            raise
        except Exception as e:
            logger.error(f"❌ [RecordStore] {operation} on {self.table_name(table)} failed: {e}")
            raise PersistenceFailure(f"{operation} on {table} failed") from e

    def _filtered(self, table: str, conditions: Dict[str, Any]):
        query = self.supabase.table(self.table_name(table)).select('*')
        for column, value in conditions.items():
            query = query.eq(column, value)
        return query

    async def get(self, table, key):
        def _get():
            result = self._filtered(table, key).limit(1).execute()
            return result.data[0] if result.data else None
        return await self._run("get", table, _get)

    async def put(self, table, item):
        def _put():
            result = self.supabase.table(self.table_name(table)).upsert(item).execute()
            return result.data[0] if result.data else item
        return await self._run("put", table, _put)

    async def update(self, table, key, changes):
        def _update():
            row = {**key, **changes}
            result = self.supabase.table(self.table_name(table)).upsert(row).execute()
            return result.data[0] if result.data else row
        return await self._run("update", table, _update)

    async def query(self, table, key_condition, index=None, order_by=None):
        # Secondary indexes are plain indexed columns in Postgres; the name is informational
        def _query():
            query = self._filtered(table, key_condition)
            if order_by:
                query = query.order(order_by, desc=False)
            result = query.execute()
            return result.data or []
        return await self._run("query", table, _query)

    async def scan(self, table):
        def _scan():
            result = self.supabase.table(self.table_name(table)).select('*').execute()
            return result.data or []
        return await self._run("scan", table, _scan)
