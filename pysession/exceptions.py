"""
Custom exceptions for the session package.

This module defines the error taxonomy used by stores, handlers and the
session manager.
"""

from typing import Optional


class SessionError(Exception):
    """Base exception for session errors."""

    def __init__(
        self,
        message: str,
        session_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.session_id = session_id

    def __str__(self):
        if self.session_id:
            return f"[{self.session_id}] {self.message}"
        return self.message


class ConfigurationError(SessionError):
    """Raised when the session configuration is unusable."""

    def __init__(self, message: str = "Invalid session configuration"):
        super().__init__(message)


class DriverNotSupportedError(ConfigurationError):
    """Raised when no handler factory exists for a driver name."""

    def __init__(self, driver: str):
        super().__init__(f"Driver {driver} not supported.")
        self.driver = driver


class HandlerError(SessionError):
    """Raised when a storage backend fails an operation."""

    def __init__(
        self,
        message: str,
        operation: str,
        session_id: Optional[str] = None
    ):
        super().__init__(message, session_id=session_id)
        self.operation = operation


class HandlerTimeoutError(HandlerError):
    """Raised when a handler call exceeds its time bound."""

    def __init__(
        self,
        operation: str,
        timeout: float,
        session_id: Optional[str] = None
    ):
        super().__init__(
            f"Handler {operation} timed out after {timeout}s",
            operation=operation,
            session_id=session_id
        )
        self.timeout = timeout


class PayloadDecryptionError(SessionError):
    """Raised when a stored payload cannot be decrypted."""

    def __init__(self, message: str = "Session payload could not be decrypted"):
        super().__init__(message)


class SessionNotStartedError(SessionError):
    """Raised when a started session is required."""

    def __init__(self, session_id: Optional[str] = None):
        super().__init__("Session has not been started", session_id=session_id)


class SessionSerializationError(SessionError):
    """Raised when a value cannot be stored in the JSON attribute tree."""

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message, session_id=session_id)
