import logging
import time
from typing import Awaitable, Callable, Dict

from aiohttp import web

from taswira.database import get_db

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

STATS_LOG_EVERY = 100
SLOW_REQUEST_SECONDS = 5.0


class DbSessionMiddleware:
    """
    Gives every request its own AsyncSession under request["db"].

    Work left pending by the handler is committed once it returns; a raised
    exception closes the session without committing.
    """
    def __init__(self):
        self._in_flight = 0
        self._peak_in_flight = 0
        self._handled = 0
        self._failed = 0

    async def __call__(self, request: web.Request, handler: Handler) -> web.StreamResponse:
        database = get_db()
        if database is None:
            raise RuntimeError("Database is not initialized")

        self._in_flight += 1
        self._handled += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        started = time.monotonic()

        try:
            async with database.get_session() as session:
                request["db"] = session
                response = await handler(request)
                if session.in_transaction():
                    await session.commit()
                return response

        except Exception:
            self._failed += 1
            raise

        finally:
            self._in_flight -= 1
            elapsed = time.monotonic() - started
            if elapsed > SLOW_REQUEST_SECONDS:
                logger.warning(f"Slow request {request.method} {request.path}: {elapsed:.1f}s")

            if self._handled % STATS_LOG_EVERY == 0:
                logger.info(
                    f"DB session stats: handled={self._handled}, failed={self._failed}, "
                    f"in_flight={self._in_flight}, peak={self._peak_in_flight}"
                )

    def get_stats(self) -> Dict:
        return {
            "active_sessions": self._in_flight,
            "max_concurrent_sessions": self._peak_in_flight,
            "total_requests": self._handled,
            "failed_requests": self._failed
        }
