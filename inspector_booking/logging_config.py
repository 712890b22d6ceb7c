# inspector_booking/logging_config.py
"""Logging configuration"""
import logging
import sys

from .config import get_settings


def setup_logging(verbose: bool = True):
    """Configure application logging"""
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.log_level.upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # SQL is echoed through sqlalchemy.engine only when explicitly asked for
    if not settings.sql_echo:
        for name in ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm"):
            logging.getLogger(name).setLevel(logging.WARNING)
