"""
In-memory session handler.

Sessions live in a process-wide table owned by the session manager. The
table serializes access with a lock so handlers used from several threads
never observe a partially updated mapping.
"""

import threading
from typing import Dict, Optional

from pysession.handlers.base import SessionHandler
from pysession.utils.logging_config import setup_logging

logger = setup_logging("memory_handler")


class MemorySessionTable:
    """Shared id -> payload mapping guarded by a lock."""

    def __init__(self):
        self._sessions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[str]:
        with self._lock:
            return self._sessions.get(session_id)

    def put(self, session_id: str, data: str) -> None:
        with self._lock:
            self._sessions[session_id] = data

    def pop(self, session_id: str) -> Optional[str]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class MemorySessionHandler(SessionHandler):
    """
    Handler keeping payloads in a MemorySessionTable.

    No timestamps are kept, so expired entries are never reaped; the
    backend is meant for tests and single-process deployments.

    Example:
        table = MemorySessionTable()
        handler = MemorySessionHandler(table)
        await handler.write("abc", "{}")
    """

    def __init__(self, table: Optional[MemorySessionTable] = None):
        self.table = table if table is not None else MemorySessionTable()

    async def read(self, session_id: str) -> str:
        return self.table.get(session_id) or ""

    async def write(self, session_id: str, data: str) -> bool:
        self.table.put(session_id, data)
        return True

    async def destroy(self, session_id: str) -> bool:
        self.table.pop(session_id)
        return True

    async def gc(self, max_age: float) -> int:
        logger.debug("Memory handler keeps no timestamps, gc skipped")
        return 0
