"""
Relational session handler.

This module provides the SessionTable backend (one row per session in a
SQLAlchemy table) and the DatabaseSessionHandler that drives it. The
handler tracks whether the current session's row exists so it can choose
between insert and update.
"""

import asyncio
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import (
    Column, Float, MetaData, String, Table, Text,
    create_engine, delete, insert, select, update
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from pysession.exceptions import HandlerError
from pysession.handlers.base import SessionHandler
from pysession.handlers.models import SessionRecord
from pysession.utils.logging_config import setup_logging

logger = setup_logging("database_handler")

T = TypeVar("T")


class SessionTable:
    """
    Row-level CRUD over the session table.

    Columns: ``id`` (unique key), ``payload``, ``last_activity`` (epoch seconds).
    All methods are blocking; the handler runs them in an executor.

    Example:
        table = SessionTable("sqlite:///sessions.db")
        table.insert(SessionRecord(id="abc", payload="{}"))
        record = table.find("abc")
    """

    def __init__(self, url: str, table_name: str = "sessions"):
        """
        Initialize the backend and create the table if it is absent.

        Args:
            url: SQLAlchemy database URL
            table_name: Name of the session table
        """
        engine_kwargs = {"pool_pre_ping": True}
        if url.startswith("sqlite"):
            # Queries run on executor threads
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url.rstrip("/") == "sqlite:":
                # A single shared connection keeps in-memory databases alive
                engine_kwargs["poolclass"] = StaticPool

        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.metadata = MetaData()
        self.table = Table(
            table_name,
            self.metadata,
            Column("id", String(255), primary_key=True),
            Column("payload", Text, nullable=False, default=""),
            Column("last_activity", Float, nullable=False, index=True),
        )
        self.metadata.create_all(self.engine)

        logger.info(f"Session table '{table_name}' ready")

    def find(self, session_id: str) -> Optional[SessionRecord]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(self.table).where(self.table.c.id == session_id)
            ).mappings().first()
        if row is None:
            return None
        return SessionRecord(**row)

    def insert(self, record: SessionRecord) -> None:
        with self.engine.begin() as conn:
            conn.execute(insert(self.table).values(**record.model_dump()))

    def update(self, record: SessionRecord) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                update(self.table)
                .where(self.table.c.id == record.id)
                .values(payload=record.payload, last_activity=record.last_activity)
            )
        return result.rowcount

    def delete(self, session_id: str) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(self.table).where(self.table.c.id == session_id)
            )
        return result.rowcount

    def delete_expired(self, cutoff: float) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(self.table).where(self.table.c.last_activity < cutoff)
            )
        return result.rowcount

    def dispose(self) -> None:
        self.engine.dispose()


class DatabaseSessionHandler(SessionHandler):
    """
    Handler storing sessions as rows of a SessionTable.

    Several handlers may share one table; each tracks the existence of its
    own session row.
    """

    def __init__(self, table: SessionTable):
        self.table = table
        self._exists = False

    @property
    def exists(self) -> bool:
        return self._exists

    async def _run(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, func)

    async def read(self, session_id: str) -> str:
        try:
            record = await self._run(lambda: self.table.find(session_id))
        except SQLAlchemyError as e:
            logger.warning(f"Error reading session {session_id}: {e}")
            return ""

        if record is None or not record.payload:
            return ""

        self._exists = True
        return record.payload

    async def write(self, session_id: str, data: str) -> bool:
        record = SessionRecord(id=session_id, payload=data, last_activity=time.time())

        try:
            await self._run(lambda: self._upsert(record))
        except SQLAlchemyError as e:
            logger.error(f"Error writing session {session_id}: {e}")
            raise HandlerError(str(e), operation="write", session_id=session_id) from e

        self._exists = True
        return True

    def _upsert(self, record: SessionRecord) -> None:
        if self._exists:
            if self.table.update(record) == 0:
                self.table.insert(record)
            return

        try:
            self.table.insert(record)
        except IntegrityError:
            self.table.update(record)

    async def destroy(self, session_id: str) -> bool:
        try:
            await self._run(lambda: self.table.delete(session_id))
        except SQLAlchemyError as e:
            logger.error(f"Error destroying session {session_id}: {e}")
            raise HandlerError(str(e), operation="destroy", session_id=session_id) from e
        return True

    async def gc(self, max_age: float) -> int:
        cutoff = time.time() - max_age
        try:
            removed = await self._run(lambda: self.table.delete_expired(cutoff))
        except SQLAlchemyError as e:
            logger.warning(f"Session gc failed: {e}")
            return 0

        if removed:
            logger.info(f"Removed {removed} expired session rows")
        return removed

    def set_exists(self, value: bool) -> "DatabaseSessionHandler":
        self._exists = value
        return self
