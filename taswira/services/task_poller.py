"""
Polling of long-running provider tasks

Call the status check, sleep, repeat until the task reaches a terminal
state or the attempt budget runs out.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

PENDING = "pending"
SUCCESS = "success"
ERROR = "error"
TIMEOUT = "timeout"


async def poll_task(
    check: Callable[[], Awaitable[Dict]],
    interval: float,
    max_attempts: int,
    max_consecutive_errors: int = 3,
    label: str = "task",
    sleep: Callable[[float], Awaitable] = asyncio.sleep
) -> Dict:
    """
    Poll a status callable until success, error or timeout.

    Args:
        check: Async callable returning {"state", "url", "error", "raw"}
            where state is pending, success or error
        interval: Seconds between attempts
        max_attempts: Attempt budget (failed checks count as attempts)
        max_consecutive_errors: Failed checks in a row that end polling
        label: Name used in log lines
        sleep: Sleep function, replaceable in tests

    Returns:
        {
            "state": "success" | "error" | "timeout",
            "result_url": Optional[str],
            "attempts": int,
            "error": Optional[str],
            "raw": Optional[dict]
        }
    """
    consecutive_errors = 0
    last_raw: Optional[Dict] = None
    last_error: Optional[str] = None

    for attempt in range(1, max_attempts + 1):
        try:
            status = await check()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            consecutive_errors += 1
            last_error = f"{type(e).__name__}: {e}"
            logger.warning(
                f"{label}: status check failed ({consecutive_errors}/{max_consecutive_errors}): {last_error}"
            )
            if consecutive_errors >= max_consecutive_errors:
                return _outcome(ERROR, attempts=attempt, error=last_error, raw=last_raw)
        else:
            consecutive_errors = 0
            last_raw = status.get("raw")
            state = status.get("state", PENDING)

            if state == SUCCESS:
                logger.info(f"{label}: completed after {attempt} attempts")
                return _outcome(SUCCESS, result_url=status.get("url"), attempts=attempt, raw=last_raw)

            if state == ERROR:
                error = status.get("error") or "Generation failed"
                logger.error(f"{label}: failed after {attempt} attempts: {error}")
                return _outcome(ERROR, attempts=attempt, error=error, raw=last_raw)

            logger.debug(f"{label}: pending (attempt {attempt}/{max_attempts})")

        if attempt < max_attempts:
            await sleep(interval)

    logger.error(f"{label}: timed out after {max_attempts} attempts")
    return _outcome(
        TIMEOUT,
        attempts=max_attempts,
        error=f"Timed out after {max_attempts} attempts",
        raw=last_raw
    )


def _outcome(
    state: str,
    result_url: Optional[str] = None,
    attempts: int = 0,
    error: Optional[str] = None,
    raw: Optional[Dict] = None
) -> Dict:
    return {
        "state": state,
        "result_url": result_url,
        "attempts": attempts,
        "error": error,
        "raw": raw,
    }
