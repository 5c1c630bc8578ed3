"""Logging configuration utilities"""
import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that flood DEBUG output
NOISY_LOGGERS = ("aiohttp.access", "asyncio", "PIL", "sqlalchemy.engine")


def configure_logging(level: str = "INFO"):
    """Route all records to stdout in one format"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stdout,
        force=True
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if name == "aiohttp.access" else logging.WARNING)


def log_session_action(logger: logging.Logger, session_id: str, action: str, details: str = ""):
    """
    Log wizard action in a consistent format.

    Args:
        logger: Logger instance
        session_id: Wizard session ID
        action: What happened
        details: Free-form extra info
    """
    parts = [f"Session {session_id}", action]
    if details:
        parts.append(str(details))
    logger.info(" | ".join(parts))


def log_error_with_context(
    logger: logging.Logger,
    error: Exception,
    context: str,
    session_id: Optional[str] = None
):
    prefix = f"Session {session_id} | " if session_id else ""
    logger.error(f"{prefix}{context} failed: {type(error).__name__}: {error}", exc_info=True)
