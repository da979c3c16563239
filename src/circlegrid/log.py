from __future__ import annotations

import logging

_LOGGER_NAME = "circlegrid"


def init_logger(console_level: int = logging.INFO) -> logging.Logger:
    """Attach a console handler to the package logger, replacing earlier ones."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    while logger.handlers:
        logger.handlers.pop()

    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    if name is None:
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
