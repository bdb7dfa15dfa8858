"""Logging configuration helpers."""

import logging

PACKAGE_LOGGER = "photo_nutrition"
LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach a single stream handler to the package logger.

    ``level`` accepts a number or a name such as ``"debug"``; repeated calls only
    adjust the level.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
