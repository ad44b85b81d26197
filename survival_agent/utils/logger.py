"""Logging configuration for the survival analysis agent."""

import logging
import sys

ROOT_LOGGER = "survival_agent"


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Create a configured logger writing to stdout."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(level)
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        fmt = logging.Formatter(
            "[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


def set_level(level: int) -> None:
    """Change the level of every logger created for this package."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)
