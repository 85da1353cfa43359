# collection_router/core/logger.py
import sys

from loguru import logger

from collection_router.core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(level: str | None = None) -> None:
    """
    Configure application-wide logging using loguru.

    Installed once at import time with settings.LOG_LEVEL; the app factory
    calls it again so a level changed through the environment is honoured.
    """
    # Remove default handler added by loguru (or a previous call)
    logger.remove()

    logger.add(
        sys.stdout,
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        backtrace=True,
        diagnose=False,
    )


setup_logging()

__all__ = ["logger", "setup_logging"]
