"""
Data Ingestion - Log Follower.

============================================================
RESPONSIBILITY
============================================================
Follows an append-only log file and hands every new line to
an async handler, in order.

- Starts at end of file (live mode) or at the beginning
- Detects truncation and rotation and reopens the file
- On rotation, drains the old file before switching
- Buffers partial lines until the newline arrives
- Read errors are logged; the follower keeps running

============================================================
DESIGN PRINCIPLES
============================================================
- A missing file at startup is the only fatal condition
- Lines are delivered strictly in file order
- The handler for line N completes before line N+1 is read
- Stopping releases the file handle
- Lines written before a truncation and not yet read are lost;
  the truncated content no longer exists to be read

============================================================
"""

import asyncio
import logging
import os
from typing import Awaitable, BinaryIO, Callable, Optional

from core.exceptions import IngestionSourceUnavailable


logger = logging.getLogger(__name__)


LineHandler = Callable[[str], Awaitable[None]]


class LogFollower:
    """
    Polling tail for a PM2 log file.
    """

    def __init__(
        self,
        path: str,
        handler: LineHandler,
        poll_interval_seconds: float = 0.5,
        start_at_end: bool = True,
        max_read_bytes: int = 1024 * 1024,
    ) -> None:
        """
        Initialize the follower.

        Args:
            path: File to follow
            handler: Awaited once per complete line
            poll_interval_seconds: Delay between polls when idle
            start_at_end: Skip content present at startup
            max_read_bytes: Upper bound for one read call
        """
        self._path = path
        self._handler = handler
        self._interval = poll_interval_seconds
        self._start_at_end = start_at_end
        self._max_read_bytes = max_read_bytes

        self._file: Optional[BinaryIO] = None
        self._inode: Optional[int] = None
        self._position = 0
        self._buffer = b""

        self._running = False
        self._task: Optional[asyncio.Task] = None

        # Metrics
        self._lines_read = 0
        self._read_errors = 0
        self._reopen_count = 0

    @property
    def path(self) -> str:
        """Followed file path."""
        return self._path

    @property
    def is_running(self) -> bool:
        """Whether the follow loop is active."""
        return self._running

    # =========================================================
    # LIFECYCLE
    # =========================================================

    def open(self) -> None:
        """
        Open the file and position the cursor.

        Raises:
            IngestionSourceUnavailable: If the file does not exist
                or cannot be opened
        """
        if not os.path.isfile(self._path):
            raise IngestionSourceUnavailable(
                f"Log file not found: {self._path}",
                path=self._path,
            )
        try:
            self._open_file(at_end=self._start_at_end)
        except OSError as e:
            raise IngestionSourceUnavailable(
                f"Cannot open log file: {self._path}",
                path=self._path,
                cause=e,
            ) from e

    async def start(self) -> None:
        """Open the file (if needed) and start following it."""
        if self._running:
            logger.warning("Log follower already running")
            return

        if self._file is None:
            self.open()

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Watching log file: {self._path}")

    async def stop(self) -> None:
        """Stop following and close the file."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._close_file()
        logger.info("Log follower stopped")

    # =========================================================
    # FOLLOW LOOP
    # =========================================================

    async def _run(self) -> None:
        """Main follow loop."""
        while self._running:
            try:
                got_data = await self.poll()
            except asyncio.CancelledError:
                break
            except OSError as e:
                self._read_errors += 1
                logger.warning(f"Log read error on {self._path}: {e}")
                got_data = False

            if not got_data:
                await asyncio.sleep(self._interval)

    async def poll(self) -> bool:
        """
        Read whatever is available and dispatch complete lines.

        Returns:
            True if any bytes were read
        """
        await self._check_rotation()
        return await self._read_available()

    async def _read_available(self) -> bool:
        """Read from the current handle and dispatch complete lines."""
        if self._file is None:
            return False

        chunk = self._file.read(self._max_read_bytes)
        if not chunk:
            return False

        self._position += len(chunk)
        self._buffer += chunk

        *lines, self._buffer = self._buffer.split(b"\n")
        for raw in lines:
            await self._dispatch(raw)

        return True

    async def flush(self) -> None:
        """Dispatch a trailing line that has no newline yet."""
        if self._buffer:
            raw, self._buffer = self._buffer, b""
            await self._dispatch(raw)

    async def _dispatch(self, raw: bytes) -> None:
        """Hand one line to the handler."""
        line = raw.decode("utf-8", errors="replace").rstrip("\r")
        self._lines_read += 1
        try:
            await self._handler(line)
        except Exception as e:
            logger.error(f"Line handler failed: {e}", exc_info=True)

    # =========================================================
    # FILE MANAGEMENT
    # =========================================================

    def _open_file(self, at_end: bool) -> None:
        """Open the followed file, optionally seeking to its end."""
        self._close_file()
        self._file = open(self._path, "rb")
        stat = os.fstat(self._file.fileno())
        self._inode = stat.st_ino
        if at_end:
            self._file.seek(0, os.SEEK_END)
            self._position = stat.st_size
        else:
            self._position = 0
        self._buffer = b""

    def _close_file(self) -> None:
        """Close the file handle if open."""
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                logger.debug(f"Error closing log file: {e}")
            self._file = None

    async def _check_rotation(self) -> None:
        """Reopen from the start if the file was rotated or truncated."""
        try:
            stat = os.stat(self._path)
        except FileNotFoundError:
            # Rotated away and not yet recreated; keep the old handle.
            return

        rotated = self._inode is not None and stat.st_ino != self._inode
        truncated = stat.st_size < self._position

        if rotated:
            # The old handle still sees lines written before the rename.
            while await self._read_available():
                pass
            await self.flush()

        if rotated or truncated:
            reason = "rotated" if rotated else "truncated"
            logger.info(f"Log file {reason}, reopening: {self._path}")
            self._reopen_count += 1
            self._open_file(at_end=False)

    def stats(self) -> dict:
        """Get follower counters."""
        return {
            "lines_read": self._lines_read,
            "read_errors": self._read_errors,
            "reopen_count": self._reopen_count,
            "position": self._position,
        }


async def replay_file(path: str, handler: LineHandler) -> int:
    """
    Feed every line of an existing file to the handler once.

    Returns:
        Number of lines dispatched

    Raises:
        IngestionSourceUnavailable: If the file does not exist
    """
    follower = LogFollower(path, handler, start_at_end=False)
    follower.open()
    try:
        while await follower.poll():
            pass
        await follower.flush()
    finally:
        await follower.stop()
    return follower.stats()["lines_read"]


__all__ = ["LineHandler", "LogFollower", "replay_file"]
