"""
Tests for SessionManager driver resolution and store assembly.
"""

import pytest

from pysession.config import SessionConfig
from pysession.exceptions import ConfigurationError, DriverNotSupportedError
from pysession.handlers.database import DatabaseSessionHandler
from pysession.handlers.file import FileSessionHandler
from pysession.handlers.memory import MemorySessionHandler
from pysession.manager.manager import SessionManager
from pysession.store.store import Store

TEST_SECRET = "sdhfjasdfasjdhfjhsajdhfjhasdfsdksdf"


@pytest.fixture
def config(tmp_path):
    """Config touching every built-in backend."""
    return SessionConfig(
        driver="memory",
        files=str(tmp_path / "sessions"),
        connection=f"sqlite:///{tmp_path / 'sessions.db'}",
        lottery=(0, 100),
        secret=TEST_SECRET
    )


@pytest.fixture
async def manager(config):
    manager = SessionManager(config)
    yield manager
    await manager.close()


class TestDriverResolution:
    """Tests for mapping driver names to handlers."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("driver, expected", [
        ("memory", MemorySessionHandler),
        ("file", FileSessionHandler),
        ("native", FileSessionHandler),
        ("database", DatabaseSessionHandler),
    ])
    async def test_builtin_drivers(self, manager, driver, expected):
        """Test built-in names build the matching handler."""
        handler = await manager.create_handler(driver)
        assert isinstance(handler, expected)

    @pytest.mark.asyncio
    async def test_default_driver(self, manager):
        """Test the configured driver is used when none is named."""
        assert manager.get_default_driver() == "memory"
        store = await manager.driver()
        assert isinstance(store.get_handler(), MemorySessionHandler)

    @pytest.mark.asyncio
    async def test_unknown_driver(self, manager):
        """Test unknown drivers fail with a named error."""
        with pytest.raises(DriverNotSupportedError) as exc_info:
            await manager.driver("redis")

        assert exc_info.value.driver == "redis"
        assert "redis" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_register_custom(self, manager):
        """Test a registered factory is used for its name."""
        custom = MemorySessionHandler()
        seen = []

        def factory(config):
            seen.append(config)
            return custom

        assert manager.register("custom", factory) is manager
        store = await manager.driver("custom")

        assert store.get_handler() is custom
        assert seen == [manager.config]
        assert manager.has_driver("custom")

    @pytest.mark.asyncio
    async def test_register_async_factory(self, manager):
        """Test factories may be coroutines."""
        custom = MemorySessionHandler()

        async def factory(config):
            return custom

        manager.register("async", factory)
        assert await manager.create_handler("async") is custom

    @pytest.mark.asyncio
    async def test_register_overrides_builtin(self, manager):
        """Test registering a built-in name replaces it."""
        custom = MemorySessionHandler()
        manager.register("file", lambda config: custom)

        assert await manager.create_handler("file") is custom

    @pytest.mark.asyncio
    async def test_register_requires_callable(self, manager):
        """Test non-callable factories are rejected."""
        with pytest.raises(ConfigurationError):
            manager.register("bad", "not a factory")

    @pytest.mark.asyncio
    async def test_factory_must_return_handler(self, manager):
        """Test factories returning something else fail fast."""
        manager.register("bad", lambda config: object())

        with pytest.raises(ConfigurationError):
            await manager.create_handler("bad")


class TestSharedBackends:
    """Tests for backends shared across handlers."""

    @pytest.mark.asyncio
    async def test_memory_table_shared(self, manager):
        """Test memory handlers from one manager share a table."""
        first = await manager.create_handler("memory")
        second = await manager.create_handler("memory")

        await first.write("abc", "payload")

        assert await second.read("abc") == "payload"
        assert first.table is manager.memory_table

    @pytest.mark.asyncio
    async def test_session_table_cached(self, manager):
        """Test the database backend is built once per manager."""
        first = await manager.create_handler("database")
        second = await manager.create_handler("database")

        assert first.table is second.table
        assert await manager.get_session_table() is first.table

    @pytest.mark.asyncio
    async def test_database_needs_connection(self):
        """Test the database driver without a URL fails fast."""
        manager = SessionManager(SessionConfig(driver="database", connection=None))

        with pytest.raises(ConfigurationError):
            await manager.driver()


class TestBuildSession:
    """Tests for store assembly."""

    @pytest.mark.asyncio
    async def test_plain_store(self, manager):
        """Test unencrypted configs build identity-transform stores."""
        store = manager.build_session(MemorySessionHandler(), None)

        assert isinstance(store, Store)
        assert store.get_name() == manager.config.cookie
        assert store.prepare_for_storage("x") == "x"
        assert store.collector is manager.collector

    def test_encrypted_store(self, config):
        """Test encrypt=True builds stores with a derived cipher."""
        config.encrypt = True
        manager = SessionManager(config)

        store = manager.build_session(MemorySessionHandler())

        assert store.prepare_for_storage("x") != "x"
        assert store.prepare_for_parse(store.prepare_for_storage("x")) == "x"

    def test_set_encrypter(self, config):
        """Test a supplied cipher replaces the derived one."""
        class Upper:
            def encrypt(self, data):
                return data.upper()

            def decrypt(self, data):
                return data.lower()

        config.encrypt = True
        manager = SessionManager(config)
        manager.set_encrypter(Upper())

        store = manager.build_session(MemorySessionHandler())
        assert store.prepare_for_storage("abc") == "ABC"

    @pytest.mark.asyncio
    async def test_session_id_passed_through(self, manager):
        """Test the candidate id reaches the store."""
        session_id = Store.generate_session_id()
        store = manager.build_session(MemorySessionHandler(), session_id)
        assert store.get_id() == session_id
