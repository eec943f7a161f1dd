"""
pysession - server-side session persistence.

A per-request attribute bag identified by an opaque session id, stored
through pluggable handlers (memory, filesystem, relational table), with
optional payload encryption and lottery-driven expiry cleanup.
"""

from pysession.config import SessionConfig
from pysession.exceptions import (
    SessionError, ConfigurationError, DriverNotSupportedError,
    HandlerError, HandlerTimeoutError, PayloadDecryptionError,
    SessionNotStartedError, SessionSerializationError
)
from pysession.handlers import (
    SessionHandler, MemorySessionHandler, MemorySessionTable,
    FileSessionHandler, DatabaseSessionHandler, SessionTable, SessionRecord
)
from pysession.store import Store, Encrypter, encrypted_store, GarbageCollector
from pysession.manager import SessionManager
from pysession.main import SessionService, SessionEnvelope

__version__ = "0.1.0"

__all__ = [
    "SessionConfig",
    "SessionError",
    "ConfigurationError",
    "DriverNotSupportedError",
    "HandlerError",
    "HandlerTimeoutError",
    "PayloadDecryptionError",
    "SessionNotStartedError",
    "SessionSerializationError",
    "SessionHandler",
    "MemorySessionHandler",
    "MemorySessionTable",
    "FileSessionHandler",
    "DatabaseSessionHandler",
    "SessionTable",
    "SessionRecord",
    "Store",
    "Encrypter",
    "encrypted_store",
    "GarbageCollector",
    "SessionManager",
    "SessionService",
    "SessionEnvelope"
]
