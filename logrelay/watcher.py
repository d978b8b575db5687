"""
File modification watcher using watchdog.
"""

import queue
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer as WatchdogObserver

from logrelay.core import ChangeEvent
from logrelay.errors import WatchSetupFailed
from logrelay.logging_config import get_logger

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = get_logger(__name__)

_CLOSED = object()


class ChangeWatcher:
    """
    Yields a ChangeEvent each time the watched file is modified.

    Watchdog delivers events on its own thread; they are handed over
    through a queue and iteration blocks until one is available. Events
    that pile up while the consumer is busy are collapsed into a single
    ChangeEvent, since every consumer re-reads the whole file anyway.

    Once closed, iteration stops and the watcher cannot be started again.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.observer: BaseObserver | None = None
        self.event_handler: FileSystemEventHandler | None = None
        self._queue: queue.Queue[object] = queue.Queue()
        self._sequence = 0
        self._closed = False

    def start(self) -> None:
        """
        Register the modification watch.

        Raises:
            WatchSetupFailed: If the path is not an existing regular file,
                the watcher was already closed, or watchdog cannot start
        """
        if self._closed:
            raise WatchSetupFailed(f"Watcher for {self.path} is closed and cannot be restarted")
        if self.observer is not None:
            return
        if not self.path.is_file():
            raise WatchSetupFailed(f"Cannot watch {self.path}: not an existing file")

        watch_path = self.path.resolve()
        self.event_handler = self._create_event_handler(watch_path)

        observer = WatchdogObserver()
        try:
            # Watchdog watches directories; the handler narrows it to our file
            observer.schedule(self.event_handler, str(watch_path.parent), recursive=False)
            observer.start()
        except OSError as e:
            raise WatchSetupFailed(f"Failed to add watch for {self.path}: {e}") from e

        self.observer = observer
        logger.info("Monitoring %s for changes", self.path)

    def close(self) -> None:
        """Stop watching and wake any consumer blocked on the next event."""
        if self._closed:
            return
        self._closed = True
        if self.observer:
            self.observer.stop()
            self.observer.join()
        self._queue.put(_CLOSED)
        logger.debug("Stopped watching %s", self.path)

    def __enter__(self) -> "ChangeWatcher":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[ChangeEvent]:
        return self

    def __next__(self) -> ChangeEvent:
        item = self._queue.get()
        if item is _CLOSED:
            # Keep the marker so later calls stop as well
            self._queue.put(_CLOSED)
            raise StopIteration

        coalesced = 0
        while True:
            try:
                extra = self._queue.get_nowait()
            except queue.Empty:
                break
            if extra is _CLOSED:
                self._queue.put(_CLOSED)
                break
            coalesced += 1

        if coalesced:
            logger.debug("Coalesced %d extra modification(s) of %s", coalesced, self.path)

        self._sequence += 1
        return ChangeEvent(path=str(self.path), sequence=self._sequence)

    def _create_event_handler(self, watch_path: Path) -> FileSystemEventHandler:
        """
        Create a watchdog handler that queues content changes of watch_path.

        Watchdog reports attribute changes (chmod, chown) as modifications
        too. Those leave size and mtime untouched and are dropped here.
        """
        events = self._queue
        last_seen = {"stat": _content_stamp(watch_path)}

        class Handler(FileSystemEventHandler):
            """Queues modification events for the watched file only."""

            def on_modified(self, event: FileSystemEvent) -> None:
                if event.is_directory:
                    return
                if isinstance(event.src_path, str):
                    event_path = event.src_path
                else:
                    event_path = event.src_path.decode()
                if Path(event_path) != watch_path:
                    return

                stamp = _content_stamp(watch_path)
                if stamp is not None and stamp == last_seen["stat"]:
                    logger.debug("Ignoring attribute-only change of %s", watch_path)
                    return
                last_seen["stat"] = stamp
                events.put(event)

        return Handler()


def watch(path: str | Path) -> ChangeWatcher:
    """Start watching path and return the (already started) watcher."""
    watcher = ChangeWatcher(path)
    watcher.start()
    return watcher


def _content_stamp(path: Path) -> tuple[int, int] | None:
    """(size, mtime_ns) of path, or None if it cannot be stat'ed."""
    try:
        stat_info = path.stat()
    except OSError:
        return None
    return (stat_info.st_size, stat_info.st_mtime_ns)
