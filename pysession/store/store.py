"""
Session store.

This module provides the Store class: the state machine over one session's
attribute tree. A store is created per request, started (loaded from its
handler), mutated, and saved back.
"""

import asyncio
import json
import re
import secrets
import string
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from pysession.exceptions import (
    HandlerError, HandlerTimeoutError, SessionNotStartedError,
    SessionSerializationError
)
from pysession.handlers.base import SessionHandler
from pysession.store.collector import GarbageCollector
from pysession.utils.dot_access import MISSING, delete_path, get_path, set_path
from pysession.utils.logging_config import setup_logging

logger = setup_logging("session_store")

T = TypeVar("T")

SESSION_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{40}")
TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 30


def _identity(data: str) -> str:
    return data


def _merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``source`` into ``target``; loaded values win."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value
    return target


class Store:
    """
    Attribute tree for one session, persisted through a handler.

    Reserved keys:
        _token     CSRF token, created on first start
        flash.new  keys flashed since the last save
        flash.old  keys due for removal at the next save

    Example:
        store = Store("pysession", handler, candidate_id)
        await store.start()
        store.put("user.id", 42)
        store.flash("status", "Profile saved")
        await store.save()
    """

    def __init__(
        self,
        name: str,
        handler: SessionHandler,
        session_id: Optional[str] = None,
        encode: Optional[Callable[[str], str]] = None,
        decode: Optional[Callable[[str], str]] = None,
        collector: Optional[GarbageCollector] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the store.

        Args:
            name: Session name (what the transport keys the id by)
            handler: Storage handler
            session_id: Candidate id; invalid or missing ids are replaced
            encode: Transform applied to the JSON payload before writing
            decode: Transform applied to the raw payload before parsing
            collector: Gc lottery triggered after every save
            timeout: Optional seconds bound on each handler call
        """
        self.set_id(session_id)
        self.name = name
        self.handler = handler
        self.collector = collector
        self.timeout = timeout
        self.last_payload: Optional[str] = None

        self._encode = encode or _identity
        self._decode = decode or _identity
        self._attributes: Dict[str, Any] = {}
        self._started = False

    # ------------------------------------------------------------------
    # Identity

    def get_id(self) -> str:
        return self.id

    def set_id(self, session_id: Optional[str] = None) -> None:
        """Use ``session_id`` if valid, otherwise generate a new one."""
        if self.is_valid_id(session_id):
            self.id = session_id
        else:
            self.id = self.generate_session_id()

    @staticmethod
    def is_valid_id(session_id: Any) -> bool:
        return isinstance(session_id, str) and SESSION_ID_PATTERN.fullmatch(session_id) is not None

    @staticmethod
    def generate_session_id() -> str:
        # 30 random bytes encode to exactly 40 url-safe characters
        return secrets.token_urlsafe(30)

    def get_name(self) -> str:
        return self.name

    def get_handler(self) -> SessionHandler:
        return self.handler

    def is_started(self) -> bool:
        return self._started

    def ensure_started(self) -> None:
        if not self._started:
            raise SessionNotStartedError(self.id)

    # ------------------------------------------------------------------
    # Lifecycle

    async def _call(self, operation: str, call: Awaitable[T]) -> T:
        if self.timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, self.timeout)
        except asyncio.TimeoutError as e:
            raise HandlerTimeoutError(operation, self.timeout, session_id=self.id) from e

    async def start(self) -> "Store":
        """
        Load the session from the handler and mark it started.

        A payload that cannot be decoded or parsed yields an empty session.
        Starting an already started store is a no-op; it reloads only
        after the next ``save``.

        Returns:
            self
        """
        if self._started:
            logger.debug(f"Session {self.id} already started")
            return self

        await self.load_session()

        if not self.get("_token"):
            self.regenerate_token()

        self._started = True
        return self

    async def load_session(self) -> None:
        data = await self.read_from_handler()
        self._attributes = _merge(self._attributes, data)

    async def read_from_handler(self) -> Dict[str, Any]:
        raw = await self._call("read", self.handler.read(self.get_id()))
        if not raw:
            return {}

        # Decoders may be supplied by callers and raise anything
        try:
            data = json.loads(self.prepare_for_parse(raw))
        except Exception as e:
            logger.warning(f"Discarding unreadable payload for session {self.id}: {e}")
            return {}

        return data if isinstance(data, dict) else {}

    def prepare_for_parse(self, data: str) -> str:
        """Prepare the raw stored string for JSON parsing."""
        return self._decode(data)

    def prepare_for_storage(self, data: str) -> str:
        """Prepare the JSON string for the handler."""
        return self._encode(data)

    async def save(self, wait_for_gc: Optional[bool] = None) -> bool:
        """
        Age flash data, write the session, and draw the gc lottery.

        The gc lottery runs whether or not the write succeeded. Unless
        ``wait_for_gc`` (or the collector) says otherwise, a winning sweep is
        detached and may still be running when this returns.

        Returns:
            bool: The handler's write status

        Raises:
            SessionSerializationError: If the tree no longer serializes to JSON
            HandlerError: If the handler cannot store the payload
        """
        self.age_flash_data()

        try:
            payload = self.prepare_for_storage(self._serialize())
            self.last_payload = payload
            return await self._call("write", self.handler.write(self.get_id(), payload))
        finally:
            self._started = False
            if self.collector is not None:
                await self.collector.trigger(self.handler, wait=wait_for_gc)

    def _serialize(self) -> str:
        try:
            return json.dumps(self._attributes)
        except (TypeError, ValueError) as e:
            raise SessionSerializationError(
                f"Session attributes are not JSON serializable: {e}", session_id=self.id
            ) from e

    async def migrate(self, destroy: bool = False) -> bool:
        """
        Move the session to a new id, keeping its attributes.

        Args:
            destroy: Remove the old record now instead of leaving it to gc

        Returns:
            bool: False if destroying the old record failed; the id is
                rotated either way
        """
        destroyed = True
        old_id = self.id

        if destroy:
            try:
                await self._call("destroy", self.handler.destroy(old_id))
            except HandlerError as e:
                logger.error(f"Could not destroy session {old_id}: {e}")
                destroyed = False

        self.set_exists(False)
        self.set_id()

        logger.debug(f"Session {old_id} migrated to {self.id}")
        return destroyed

    async def regenerate(self, destroy: bool = False) -> bool:
        """Generate a new session identifier. See ``migrate``."""
        return await self.migrate(destroy)

    def set_exists(self, value: bool) -> None:
        self.handler.set_exists(value)

    # ------------------------------------------------------------------
    # Attributes

    def all(self) -> Dict[str, Any]:
        return self._attributes

    def get(self, name: str, default: Any = None) -> Any:
        value = get_path(self._attributes, name)
        return default if value is MISSING else value

    def set(self, name: str, value: Any) -> None:
        """
        Set a dotted-path attribute.

        Raises:
            SessionSerializationError: If the value is not JSON serializable
        """
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SessionSerializationError(
                f"Value for {name} is not JSON serializable: {e}", session_id=self.id
            ) from e
        set_path(self._attributes, name, value)

    def has(self, name: str) -> bool:
        return get_path(self._attributes, name) is not MISSING

    def put(self, key: Union[str, Dict[str, Any]], value: Any = None) -> None:
        """Put a key / value pair or a mapping of pairs in the session."""
        update = key if isinstance(key, dict) else {key: value}
        for path, item in update.items():
            self.set(path, item)

    def pull(self, key: str, default: Any = None) -> Any:
        """Get the value of a given key and then forget it."""
        value = delete_path(self._attributes, key)
        return default if value is MISSING else value

    def push(self, key: str, value: Any) -> None:
        """Append to a session list; no-op if the value is not a list."""
        array = self.get(key, [])
        if isinstance(array, list):
            self.put(key, array + [value])

    def forget(self, key: str) -> None:
        delete_path(self._attributes, key)

    def flush(self) -> None:
        self._attributes = {}

    # ------------------------------------------------------------------
    # CSRF token

    def regenerate_token(self) -> None:
        self.put("_token", "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH)))

    def get_token(self) -> Optional[str]:
        return self.get("_token")

    # ------------------------------------------------------------------
    # Flash data

    def flash(self, key: str, value: Any) -> None:
        """Flash a key / value pair, visible for the next load only."""
        self.put(key, value)
        self._merge_new_flashes([key])
        self._remove_from_old_flash_data([key])

    def flash_input(self, values: Any) -> None:
        self.flash("_old_input", values)

    def reflash(self) -> None:
        """Keep all current flash data for one more load."""
        self._merge_new_flashes(self.get("flash.old", []))
        self.put("flash.old", [])

    def keep(self, *keys: Union[str, List[str]]) -> None:
        """Keep a subset of the current flash data for one more load."""
        if len(keys) == 1 and isinstance(keys[0], (list, tuple)):
            keys = tuple(keys[0])

        self._merge_new_flashes(list(keys))
        self._remove_from_old_flash_data(list(keys))

    def age_flash_data(self) -> None:
        for old in self.get("flash.old", []):
            self.forget(old)

        self.put("flash.old", self.get("flash.new", []))
        self.put("flash.new", [])

    def _merge_new_flashes(self, keys: List[str]) -> None:
        merged = list(self.get("flash.new", []))
        for key in keys:
            if key not in merged:
                merged.append(key)
        self.put("flash.new", merged)

    def _remove_from_old_flash_data(self, keys: List[str]) -> None:
        self.put("flash.old", [k for k in self.get("flash.old", []) if k not in keys])
