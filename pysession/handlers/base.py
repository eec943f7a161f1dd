"""
Storage handler contract.

Every backend the session manager can build implements this interface.
Handlers store opaque serialized payloads keyed by session id; they know
nothing about the attribute tree inside.
"""

from abc import ABC, abstractmethod


class SessionHandler(ABC):
    """
    Abstract base class for session storage backends.

    Contract:
        read    -> stored payload, or "" when absent/unreadable (never raises
                   for a missing record)
        write   -> upserts; raises HandlerError on backend failure
        destroy -> removes; a missing record is not an error
        gc      -> best effort, never raises
    """

    @abstractmethod
    async def read(self, session_id: str) -> str:
        """
        Read the serialized payload for a session.

        Args:
            session_id: Session identifier

        Returns:
            The stored payload, or an empty string
        """

    @abstractmethod
    async def write(self, session_id: str, data: str) -> bool:
        """
        Store the serialized payload for a session.

        Args:
            session_id: Session identifier
            data: Serialized payload

        Returns:
            bool: True once the payload is stored
        """

    @abstractmethod
    async def destroy(self, session_id: str) -> bool:
        """
        Remove the record for a session.

        Args:
            session_id: Session identifier

        Returns:
            bool: True once no record remains
        """

    @abstractmethod
    async def gc(self, max_age: float) -> int:
        """
        Remove records idle for longer than ``max_age`` seconds.

        Returns:
            int: Number of records removed
        """

    def set_exists(self, value: bool) -> "SessionHandler":
        """Advise whether the current record exists. No-op by default."""
        return self
