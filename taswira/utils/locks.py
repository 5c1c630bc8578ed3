"""
Per-session processing locks so a wizard session runs one provider job at a time
"""
import asyncio
import time
import logging
from typing import Dict, Set
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class SessionBusy(RuntimeError):
    """Raised when a session already has a running operation"""
    pass


class SessionProcessingLock:
    """
    Rejects (instead of queueing) a second operation on a busy session.
    Timestamps of finished sessions are dropped periodically.
    """
    def __init__(self, cleanup_interval: int = 300):
        """
        Args:
            cleanup_interval: Seconds between cleanup cycles
        """
        self._processing: Set[str] = set()
        self._operations: Dict[str, str] = {}
        self._main_lock = asyncio.Lock()

        self._timestamps: Dict[str, float] = {}
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()

    async def _cleanup_old_entries(self):
        now = time.time()

        if now - self._last_cleanup < self._cleanup_interval:
            return

        async with self._main_lock:
            to_remove = [
                session_id for session_id, ts in self._timestamps.items()
                if now - ts > self._cleanup_interval and session_id not in self._processing
            ]
            for session_id in to_remove:
                del self._timestamps[session_id]

            self._last_cleanup = now

            if to_remove:
                logger.info(
                    f"Lock cleanup: removed {len(to_remove)} stale entries. "
                    f"Processing: {len(self._processing)}"
                )

    async def try_acquire(self, session_id: str, operation: str = "processing"):
        """
        Mark session as busy without a context manager.
        Used when the work continues in a background task.

        Raises:
            SessionBusy: If the session already has a running operation
        """
        await self._cleanup_old_entries()

        async with self._main_lock:
            if session_id in self._processing:
                running = self._operations.get(session_id, "processing")
                raise SessionBusy(f"Session is busy ({running})")

            self._processing.add(session_id)
            self._operations[session_id] = operation
            self._timestamps[session_id] = time.time()

    async def release(self, session_id: str):
        async with self._main_lock:
            self._processing.discard(session_id)
            self._operations.pop(session_id, None)
            self._timestamps[session_id] = time.time()

    @asynccontextmanager
    async def acquire(self, session_id: str, operation: str = "processing"):
        """
        Hold the session for the duration of the block.

        Raises:
            SessionBusy: If the session already has a running operation
        """
        await self.try_acquire(session_id, operation)
        try:
            yield
        finally:
            await self.release(session_id)

    def is_processing(self, session_id: str) -> bool:
        return session_id in self._processing

    def get_stats(self) -> Dict:
        """Get lock manager statistics for monitoring"""
        return {
            "processing_sessions": len(self._processing),
            "tracked_sessions": len(self._timestamps),
            "cleanup_interval": self._cleanup_interval,
            "time_since_cleanup": time.time() - self._last_cleanup
        }
