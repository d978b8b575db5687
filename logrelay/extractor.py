"""
Reads a bounded snapshot of the log file under a shared advisory lock.
"""

import fcntl
import os

from logrelay.errors import Contended, ExtractionError, NotFound, PermissionDenied
from logrelay.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_SIZE = 1024


def extract(path: str | os.PathLike[str], max_size: int = DEFAULT_MAX_SIZE) -> bytes:
    """
    Read the current content of a file without waiting on writers.

    A shared lock is requested without blocking. If a writer holds an
    exclusive lock the call fails straight away instead of queueing behind
    it; the next change event will retry.

    Args:
        path: File to read
        max_size: Buffer capacity; at most max_size - 1 bytes of content
            are returned, followed by a NUL terminator

    Returns:
        The content bytes with a trailing b"\\0"

    Raises:
        NotFound: If the file does not exist
        PermissionDenied: If the file cannot be opened for reading
        Contended: If an exclusive lock is currently held on the file
        ExtractionError: For any other read failure
    """
    if max_size < 2:
        raise ValueError(f"max_size must be at least 2, got {max_size}")

    path = os.fspath(path)
    try:
        fd = os.open(path, os.O_RDONLY)
    except FileNotFoundError as e:
        raise NotFound(path) from e
    except PermissionError as e:
        raise PermissionDenied(path) from e
    except OSError as e:
        raise ExtractionError(path, f"Failed to open log file ({e.strerror})") from e

    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_SH | fcntl.LOCK_NB)
        except BlockingIOError as e:
            raise Contended(path) from e
        except OSError as e:
            raise ExtractionError(path, f"Failed to acquire shared lock ({e.strerror})") from e

        try:
            content = _read_bounded(fd, max_size - 1)
        except OSError as e:
            raise ExtractionError(path, f"Error reading log file ({e.strerror})") from e
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)

    logger.debug("Extracted %d byte(s) from %s", len(content), path)
    return content + b"\0"


def _read_bounded(fd: int, limit: int) -> bytes:
    """Read until EOF or until limit bytes have been collected."""
    chunks: list[bytes] = []
    remaining = limit
    while remaining > 0:
        chunk = os.read(fd, remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)
