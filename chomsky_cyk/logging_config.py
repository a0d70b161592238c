import logging
import os
import sys
from logging import Logger
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(name: str, log_file: str | None = None, level: str = "WARNING") -> Logger:
    """
    Sets up a logger once per name. Records go to a rotating file when ``log_file`` or the
    LOG_FILE env var is set, and to stderr when only LOG_LEVEL is set. The level comes from
    LOG_LEVEL and falls back to ``level``.

    With none of them set the logger only gets a NullHandler and keeps its level unset, so that
    importing the package prints nothing and the application's own logging setup decides.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        env_level = os.getenv("LOG_LEVEL")
        log_file = log_file or os.getenv("LOG_FILE")
        if not log_file and not env_level:
            logger.addHandler(logging.NullHandler())
            return logger
        if log_file:
            handler = RotatingFileHandler(log_file, maxBytes=2 * 1024 * 1024, backupCount=2)
        else:
            handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        log_level = (env_level or level).upper()
        logger.setLevel(getattr(logging, log_level, logging.WARNING))
    return logger
