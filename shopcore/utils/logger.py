"""
Logging configuration for shopcore.

One package logger writing to stdout. The level comes from SHOPCORE_LOG_LEVEL,
falling back to LOG_LEVEL, then INFO. Integrity warnings from ingestion and
cart rejections all flow through children of this logger.
"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = os.getenv("SHOPCORE_LOG_LEVEL", os.getenv("LOG_LEVEL", "INFO")).upper()

logger = logging.getLogger("shopcore")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

# Prevent propagation to root logger (avoid duplicate logs)
logger.propagate = False


def set_log_level(level: str) -> None:
    """Change the package log level at runtime (logger and its handlers)."""
    level = level.upper()
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Module path under the package, e.g. "cart.ledger"

    Returns:
        The `shopcore.<name>` child logger, or the package logger
    """
    if name:
        return logging.getLogger(f"shopcore.{name}")
    return logger
