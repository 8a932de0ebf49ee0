"""Logging configuration. Logs go to stderr so stdout only carries the final report."""

import logging
import sys

# Request lines from these are noise next to the git/cargo command log
_CHATTY_LOGGERS = ("httpx", "httpcore")


def setup_logger(name: str = "dependent_check", level: str = "INFO") -> logging.Logger:
    """Configure the run's logger once; later calls only adjust the level."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(handler)
    logger.propagate = False

    for chatty in _CHATTY_LOGGERS:
        logging.getLogger(chatty).setLevel(logging.WARNING)
    return logger
