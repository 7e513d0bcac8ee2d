"""
Package logger setup for the command line and the UI.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Send records of the ``meshcaster`` logger to stderr and, optionally, a file.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Threshold for the logger and its handlers
        log_file: Optional path, truncated on setup

    Returns:
        The ``meshcaster`` logger.
    """
    logger = logging.getLogger("meshcaster")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    # stdout is reserved for PPM output
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging to %s", log_file or "stderr")
    return logger
