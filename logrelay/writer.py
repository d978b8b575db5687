"""
Appends timestamped entries to the log file.
"""

import time
from pathlib import Path

from logrelay.logging_config import get_logger

logger = get_logger(__name__)


def format_entry(timestamp: float | None = None) -> str:
    """Return one log line, e.g. "Log entry at Mon Oct 19 12:00:00 2026\\n"."""
    return f"Log entry at {time.ctime(timestamp)}\n"


def write_entry(log_file: str | Path, timestamp: float | None = None) -> str:
    """
    Append one entry to log_file, creating its directory if needed.

    The entry is appended in one write, without an advisory lock.

    Args:
        log_file: File to append to
        timestamp: Seconds since the epoch (default: now)

    Returns:
        The line that was written

    Raises:
        OSError: If the directory or file cannot be created or written
    """
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    entry = format_entry(timestamp)
    with path.open('a', encoding='utf-8') as f:
        f.write(entry)

    logger.debug("Appended entry to %s", path)
    return entry
