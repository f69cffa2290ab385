"""
Logging setup.

All modules log through loguru's shared ``logger``; this only swaps the
default sink for one honouring the configured level.
"""

import sys

from loguru import logger

from citygate.settings import Settings


def setup_logging(settings: Settings) -> None:
    """Configure the stderr sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )
    logger.info(
        f"Logging configured with level: {settings.log_level} ({settings.app_env} mode)"
    )
