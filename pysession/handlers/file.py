"""
Filesystem session handler.

Each session is stored as one file, named by its id, inside a configured
directory. Last-access times of those files drive garbage collection.
"""

import asyncio
import os
import time
from pathlib import Path
from typing import Callable, TypeVar

from pysession.exceptions import HandlerError
from pysession.handlers.base import SessionHandler
from pysession.utils.logging_config import setup_logging

logger = setup_logging("file_handler")

T = TypeVar("T")


class FileSessionHandler(SessionHandler):
    """
    Handler writing one file per session.

    Example:
        handler = FileSessionHandler("/var/lib/app/sessions")
        await handler.write(session_id, payload)
        payload = await handler.read(session_id)
    """

    def __init__(self, path: str):
        """
        Initialize the handler, creating the storage directory.

        Args:
            path: Directory holding session files
        """
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)

        logger.debug(f"FileSessionHandler using {self.path}")

    def _file(self, session_id: str) -> Path:
        # Ids are file names, never paths
        if not session_id or os.sep in session_id or session_id in (".", ".."):
            raise HandlerError(
                "Invalid session file name", operation="path", session_id=session_id
            )
        return self.path / session_id

    async def _run(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, func)

    async def read(self, session_id: str) -> str:
        try:
            target = self._file(session_id)
            return await self._run(lambda: target.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, HandlerError):
            return ""

    async def write(self, session_id: str, data: str) -> bool:
        target = self._file(session_id)
        try:
            await self._run(lambda: target.write_text(data, encoding="utf-8"))
        except OSError as e:
            logger.error(f"Error writing session file {session_id}: {e}")
            raise HandlerError(str(e), operation="write", session_id=session_id) from e
        return True

    async def destroy(self, session_id: str) -> bool:
        target = self._file(session_id)
        try:
            await self._run(target.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Error removing session file {session_id}: {e}")
            raise HandlerError(str(e), operation="destroy", session_id=session_id) from e
        return True

    async def gc(self, max_age: float) -> int:
        """
        Delete session files not accessed within ``max_age`` seconds.

        Hidden entries and non-regular files are skipped. Errors on any single
        file only skip that file.
        """
        try:
            return await self._run(lambda: self._sweep(max_age))
        except OSError as e:
            logger.warning(f"Session directory scan failed: {e}")
            return 0

    def _sweep(self, max_age: float) -> int:
        cutoff = time.time() - max_age
        removed = 0

        with os.scandir(self.path) as entries:
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                try:
                    if not entry.is_file(follow_symlinks=False):
                        continue
                    if entry.stat().st_atime < cutoff:
                        os.unlink(entry.path)
                        removed += 1
                except OSError as e:
                    logger.debug(f"Skipping {entry.name} during gc: {e}")

        if removed:
            logger.info(f"Removed {removed} expired session files")
        return removed
