"""
Configuration for session handling.

This module provides the configuration dataclass consumed by the
session manager and the session service.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Optional, Tuple, Dict, Any
import yaml

from pysession.exceptions import ConfigurationError

DEFAULT_SECRET = "override this value with a 32+ character random string"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


@dataclass
class SessionConfig:
    """Complete session configuration."""
    driver: str = "file"
    lifetime: int = 300  # seconds of inactivity before gc may reap a session
    expire_on_close: bool = False
    files: str = field(default_factory=lambda: os.path.join(os.getcwd(), "sessions"))
    connection: Optional[str] = None  # SQLAlchemy URL for the database driver
    table: str = "sessions"
    lottery: Tuple[int, int] = (2, 100)
    cookie: str = "pysession"
    encrypt: bool = False
    secret: str = DEFAULT_SECRET
    handler_timeout: Optional[float] = None
    wait_for_gc: bool = False

    def validate(self) -> "SessionConfig":
        """
        Check the configuration for values the session layer cannot work with.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: On the first invalid value
        """
        if not self.secret:
            raise ConfigurationError("secret option required for sessions")

        if not self.driver:
            raise ConfigurationError("driver option required for sessions")

        if self.lifetime < 0:
            raise ConfigurationError(f"lifetime must not be negative, got {self.lifetime}")

        if len(self.lottery) != 2:
            raise ConfigurationError(f"lottery must be [numerator, denominator], got {self.lottery}")

        numerator, denominator = self.lottery
        if denominator < 1 or numerator < 0:
            raise ConfigurationError(f"invalid lottery odds {list(self.lottery)}")

        if self.handler_timeout is not None and self.handler_timeout <= 0:
            raise ConfigurationError("handler_timeout must be positive")

        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        """Build a configuration from a mapping, ignoring unknown keys."""
        config = cls()
        known = {f.name for f in fields(cls)}

        for key, value in (data or {}).items():
            if key not in known:
                continue
            if key == "lottery" and value is not None:
                value = tuple(value)
            setattr(config, key, value)

        return config

    @classmethod
    def from_yaml(cls, path: str) -> "SessionConfig":
        """Load configuration from YAML file."""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Allow the settings to live under a top-level "session" key
        if "session" in data and isinstance(data["session"], dict):
            data = data["session"]

        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Load configuration from environment variables."""
        config = cls()

        if os.getenv("SESSION_DRIVER"):
            config.driver = os.getenv("SESSION_DRIVER")

        if os.getenv("SESSION_FILES"):
            config.files = os.getenv("SESSION_FILES")

        if os.getenv("SESSION_CONNECTION"):
            config.connection = os.getenv("SESSION_CONNECTION")

        if os.getenv("SESSION_TABLE"):
            config.table = os.getenv("SESSION_TABLE")

        if os.getenv("SESSION_COOKIE"):
            config.cookie = os.getenv("SESSION_COOKIE")

        if os.getenv("SESSION_ENCRYPT"):
            config.encrypt = _env_flag("SESSION_ENCRYPT")

        if os.getenv("SESSION_SECRET"):
            config.secret = os.getenv("SESSION_SECRET")

        if os.getenv("SESSION_EXPIRE_ON_CLOSE"):
            config.expire_on_close = _env_flag("SESSION_EXPIRE_ON_CLOSE")

        if os.getenv("SESSION_WAIT_FOR_GC"):
            config.wait_for_gc = _env_flag("SESSION_WAIT_FOR_GC")

        try:
            if os.getenv("SESSION_LIFETIME"):
                config.lifetime = int(os.getenv("SESSION_LIFETIME"))

            if os.getenv("SESSION_HANDLER_TIMEOUT"):
                config.handler_timeout = float(os.getenv("SESSION_HANDLER_TIMEOUT"))

            if os.getenv("SESSION_LOTTERY"):
                numerator, denominator = os.getenv("SESSION_LOTTERY").split(",")
                config.lottery = (int(numerator), int(denominator))
        except ValueError as e:
            raise ConfigurationError(f"Invalid session environment value: {e}") from e

        return config

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "driver": self.driver,
            "lifetime": self.lifetime,
            "expire_on_close": self.expire_on_close,
            "files": self.files,
            "connection": self.connection,
            "table": self.table,
            "lottery": list(self.lottery),
            "cookie": self.cookie,
            "encrypt": self.encrypt,
            "handler_timeout": self.handler_timeout,
            "wait_for_gc": self.wait_for_gc
        }
