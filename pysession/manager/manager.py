"""
Session Manager for driver resolution and store assembly.

This module provides the SessionManager class, which maps driver names to
handler factories, owns the shared backends (memory table, session table),
and builds plain or encrypted stores around the resolved handler.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pysession.config import SessionConfig
from pysession.exceptions import ConfigurationError, DriverNotSupportedError
from pysession.handlers.base import SessionHandler
from pysession.handlers.database import DatabaseSessionHandler, SessionTable
from pysession.handlers.file import FileSessionHandler
from pysession.handlers.memory import MemorySessionHandler, MemorySessionTable
from pysession.store.collector import GarbageCollector
from pysession.store.encrypted import Encrypter, encrypted_store
from pysession.store.store import Store
from pysession.utils.logging_config import setup_logging

logger = setup_logging("session_manager")

HandlerFactory = Callable[
    [SessionConfig], Union[SessionHandler, Awaitable[SessionHandler]]
]


class SessionManager:
    """
    Resolve drivers to handlers and wrap them in stores.

    Built-in drivers: ``memory``, ``file`` (alias ``native``), ``database``.
    Factories registered with ``register`` take precedence over built-ins
    of the same name.

    Example:
        manager = SessionManager(SessionConfig(driver="memory"))
        store = await manager.driver(session_id=candidate_id)
        await store.start()
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        encrypter: Optional[Any] = None
    ):
        """
        Initialize session manager.

        Args:
            config: Session configuration
            encrypter: Cipher with ``encrypt``/``decrypt``; derived from the
                configured secret when encryption is on and none is given
        """
        self.config = config or SessionConfig()
        self.encrypter = encrypter

        self._memory_table = MemorySessionTable()
        self._session_table: Optional[SessionTable] = None
        self._table_lock = asyncio.Lock()

        self._collector = GarbageCollector(
            lottery=self.config.lottery,
            lifetime=self.config.lifetime,
            wait=self.config.wait_for_gc
        )

        self._creators: Dict[str, HandlerFactory] = {
            "memory": self._create_memory_handler,
            "file": self._create_file_handler,
            "native": self._create_file_handler,
            "database": self._create_database_handler,
        }
        self._custom_creators: Dict[str, HandlerFactory] = {}

        logger.info(f"SessionManager initialized (driver={self.config.driver})")

    @property
    def memory_table(self) -> MemorySessionTable:
        return self._memory_table

    @property
    def collector(self) -> GarbageCollector:
        return self._collector

    def get_default_driver(self) -> str:
        return self.config.driver

    def register(self, driver: str, factory: HandlerFactory) -> "SessionManager":
        """
        Register a custom handler factory.

        Args:
            driver: Driver name; may shadow a built-in
            factory: ``factory(config)`` returning a handler or an awaitable of one

        Returns:
            self, for chaining
        """
        if not callable(factory):
            raise ConfigurationError(f"Factory for driver {driver} is not callable")

        self._custom_creators[driver] = factory
        logger.info(f"Registered session driver: {driver}")
        return self

    def has_driver(self, driver: str) -> bool:
        return driver in self._custom_creators or driver in self._creators

    async def create_handler(self, driver: Optional[str] = None) -> SessionHandler:
        """
        Build the handler for a driver.

        Raises:
            DriverNotSupportedError: If no factory exists for the driver
        """
        driver = driver or self.get_default_driver()
        factory = self._custom_creators.get(driver) or self._creators.get(driver)

        if factory is None:
            raise DriverNotSupportedError(driver)

        handler = factory(self.config)
        if inspect.isawaitable(handler):
            handler = await handler

        if not isinstance(handler, SessionHandler):
            raise ConfigurationError(
                f"Driver {driver} produced {type(handler).__name__}, not a SessionHandler"
            )
        return handler

    async def driver(
        self,
        driver: Optional[str] = None,
        session_id: Optional[str] = None
    ) -> Store:
        """Build a store backed by the given (or default) driver."""
        handler = await self.create_handler(driver)
        return self.build_session(handler, session_id)

    def build_session(
        self,
        handler: SessionHandler,
        session_id: Optional[str] = None
    ) -> Store:
        """Wrap a handler in a plain or encrypted store."""
        options = {
            "collector": self._collector,
            "timeout": self.config.handler_timeout
        }

        if self.config.encrypt:
            if self.encrypter is None:
                self.encrypter = Encrypter(self.config.secret)
            return encrypted_store(
                self.config.cookie, handler, self.encrypter,
                session_id=session_id, **options
            )

        return Store(self.config.cookie, handler, session_id, **options)

    def set_encrypter(self, encrypter: Any) -> None:
        self.encrypter = encrypter

    async def get_session_table(self) -> SessionTable:
        """Build the session table on first use and cache it."""
        async with self._table_lock:
            if self._session_table is None:
                if not self.config.connection:
                    raise ConfigurationError(
                        "connection option required for the database driver"
                    )
                loop = asyncio.get_event_loop()
                self._session_table = await loop.run_in_executor(
                    None,
                    lambda: SessionTable(self.config.connection, self.config.table)
                )
        return self._session_table

    async def close(self) -> None:
        """Finish pending gc sweeps and release the database engine."""
        await self._collector.drain()

        if self._session_table is not None:
            self._session_table.dispose()
            self._session_table = None

    def _create_memory_handler(self, config: SessionConfig) -> SessionHandler:
        return MemorySessionHandler(self._memory_table)

    def _create_file_handler(self, config: SessionConfig) -> SessionHandler:
        return FileSessionHandler(config.files)

    async def _create_database_handler(self, config: SessionConfig) -> SessionHandler:
        table = await self.get_session_table()
        return DatabaseSessionHandler(table)
