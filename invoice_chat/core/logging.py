import sys
from loguru import logger
from .config import settings


def setup_logging():
    """Configure the loguru stderr sink and return the shared logger"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        serialize=settings.log_json,
        backtrace=False,
        diagnose=settings.app_env == "dev",
    )
    return logger
