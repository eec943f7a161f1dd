"""
Session Service - request-level orchestrator.

This module provides the SessionService class that request-handling
middleware talks to: it hands in the candidate session id read from the
transport, gets back a started store, and after the response receives the
id and payload to attach to the outgoing transport.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pysession.config import SessionConfig
from pysession.exceptions import DriverNotSupportedError
from pysession.manager.manager import HandlerFactory, SessionManager
from pysession.store.store import Store
from pysession.utils.logging_config import setup_logging

logger = setup_logging("session_service")


@dataclass
class SessionEnvelope:
    """What the transport needs once a session is closed."""
    name: str
    session_id: str
    payload: Optional[str]
    max_age: int  # seconds; 0 means "until the client closes"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "session_id": self.session_id,
            "payload": self.payload,
            "max_age": self.max_age
        }


class SessionService:
    """
    Start and close sessions for individual requests.

    Lifecycle:
        candidate id -> start_session -> Store (started)
            -> caller mutates -> close_session -> SessionEnvelope

    Example:
        service = SessionService(SessionConfig(driver="memory", secret="..."))
        session = await service.start_session(request_cookie_value)
        session.put("cart.items", [])
        envelope = await service.close_session(session)
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        encrypter: Optional[Any] = None,
        drivers: Optional[Dict[str, HandlerFactory]] = None,
        **overrides
    ):
        """
        Initialize the session service.

        Args:
            config: Session configuration (defaults when omitted)
            encrypter: Optional cipher for encrypted sessions
            drivers: Custom driver factories registered before validation
            **overrides: Individual config fields overriding ``config``

        Raises:
            ConfigurationError: If the configuration is unusable or the
                default driver cannot be resolved
        """
        config = config or SessionConfig()
        if overrides:
            config = SessionConfig.from_dict({**config.to_dict(), "secret": config.secret, **overrides})
        self.config = config.validate()

        self.manager = SessionManager(self.config, encrypter)
        for name, factory in (drivers or {}).items():
            self.manager.register(name, factory)

        if not self.manager.has_driver(self.config.driver):
            raise DriverNotSupportedError(self.config.driver)

        logger.info(f"SessionService created (driver={self.config.driver})")

    def register(self, driver: str, factory: HandlerFactory) -> "SessionService":
        """Register a custom driver factory on the underlying manager."""
        self.manager.register(driver, factory)
        return self

    async def get_session(self, session_id: Optional[str] = None) -> Store:
        """Build an unstarted store for the candidate id."""
        return await self.manager.driver(session_id=session_id)

    async def start_session(self, session_id: Optional[str] = None) -> Store:
        """
        Build and start the session for a request.

        Args:
            session_id: Candidate id from the transport; missing, invalid or
                unverifiable ids yield a fresh session

        Returns:
            Store: A started store
        """
        store = await self.get_session(session_id)
        await store.start()
        return store

    async def close_session(
        self,
        store: Store,
        wait_for_gc: Optional[bool] = None
    ) -> SessionEnvelope:
        """
        Save the session and describe it for the transport.

        The gc lottery is drawn during save; a winning sweep is detached
        unless ``wait_for_gc`` (or the config) asks to join it.

        Raises:
            SessionNotStartedError: If the store was never started
            HandlerError: If the handler cannot store the session
        """
        store.ensure_started()
        await store.save(wait_for_gc=wait_for_gc)

        return SessionEnvelope(
            name=store.get_name(),
            session_id=store.get_id(),
            payload=store.last_payload,
            max_age=self.get_cookie_lifetime()
        )

    def get_cookie_lifetime(self) -> int:
        """Lifetime the transport should give the id, in seconds."""
        return 0 if self.config.expire_on_close else self.config.lifetime

    def set_encrypter(self, encrypter: Any) -> None:
        self.manager.set_encrypter(encrypter)

    async def shutdown(self) -> None:
        """Wait for detached gc sweeps and release backends."""
        await self.manager.close()
        logger.info("SessionService shut down")
