import os
import sys

from loguru import logger

from netbridge.core.constants import LOG_FILE, LOG_LEVEL, TMPDIR

# Configure logger
logger.remove()  # Remove default handler

# Add stderr handler only if available (not in windowed hosts)
if sys.stderr:
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=LOG_LEVEL,
    )

# Add file handler
try:
    os.makedirs(TMPDIR, exist_ok=True)
    logger.add(
        LOG_FILE,
        rotation="1 MB",
        retention="10 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
    )
except OSError as e:
    logger.warning(f"[Logger] File logging disabled: {e}")


def set_console_level(level: str) -> None:
    """Replace all sinks with a stderr sink at ``level`` plus the debug file sink."""
    logger.remove()
    if sys.stderr:
        logger.add(sys.stderr, level=level.upper())
    try:
        logger.add(LOG_FILE, level="DEBUG", rotation="1 MB", retention="10 days")
    except OSError as e:
        logger.warning(f"[Logger] File logging disabled: {e}")
