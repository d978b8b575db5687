"""
Centralized logging configuration for Logrelay.

Diagnostics go to stderr so that stdout stays free for the dashboard's
received messages and the writer's confirmations.
"""

import logging
import logging.handlers
import sys

LOGGER_NAME = "logrelay"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> None:
    """
    Route the relay's diagnostics to stderr, and optionally to a file.

    The cli calls this once per process with the `logging:` section of the
    config, overridden by --log-level and --log-file. Calling it again
    replaces the handlers rather than adding to them.

    Args:
        level: Threshold for the logrelay loggers; unknown names mean INFO
        log_file: Extra rotating log file, e.g. for a long-running watcher.
            Must not be the relayed log file, or every diagnostic line
            would trigger another publish.
        max_bytes: Size at which log_file rotates
        backup_count: Rotated copies of log_file to keep
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    relay_logger = logging.getLogger(LOGGER_NAME)
    relay_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    relay_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    relay_logger.addHandler(stderr_handler)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        relay_logger.addHandler(file_handler)

    # Records stop here; an embedding application's root handlers stay quiet
    relay_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Logger under the logrelay namespace, e.g. "logrelay.watcher" for __name__."""
    prefix = f"{LOGGER_NAME}."
    if name.startswith(prefix):
        name = name[len(prefix):]

    return logging.getLogger(prefix + name)
