"""
Storage handlers for session payloads.

Each handler implements the SessionHandler contract over a different
backend: process memory, the filesystem, or a relational table.
"""

from pysession.handlers.base import SessionHandler
from pysession.handlers.memory import MemorySessionHandler, MemorySessionTable
from pysession.handlers.file import FileSessionHandler
from pysession.handlers.database import DatabaseSessionHandler, SessionTable
from pysession.handlers.models import SessionRecord

__all__ = [
    "SessionHandler",
    "MemorySessionHandler",
    "MemorySessionTable",
    "FileSessionHandler",
    "DatabaseSessionHandler",
    "SessionTable",
    "SessionRecord"
]
