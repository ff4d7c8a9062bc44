"""Logging configuration helpers."""

import logging

# Client libraries that log every outbound request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "hpack")


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure the calorie_tracker logger with a single stream handler.

    Safe to call repeatedly; later calls only change the level.
    """
    logger = logging.getLogger("calorie_tracker")
    logger.setLevel(level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
