"""
Relay loop that wires together the change watcher, extractor and publisher.
"""

from collections.abc import Callable, Iterable
from functools import partial

from logrelay.config import Config
from logrelay.core import ChangeEvent, Publisher, decode_payload
from logrelay.errors import RelayError
from logrelay.extractor import extract
from logrelay.logging_config import get_logger
from logrelay.publisher import SignalPublisher
from logrelay.watcher import ChangeWatcher

logger = get_logger(__name__)


class RelayLoop:
    """
    Publishes the log file's content every time it changes.

    Each change event is handled as extract -> publish, strictly in that
    order and to completion before the next event is awaited. A failure in
    either step is logged and the loop goes back to waiting; the next
    modification of the file retries naturally.
    """

    def __init__(
        self,
        events: Iterable[ChangeEvent],
        extract_content: Callable[[], bytes],
        publisher: Publisher
    ):
        """
        Initialize the relay loop.

        Args:
            events: Source of change events, usually a ChangeWatcher
            extract_content: Reads the current file content
            publisher: Where extracted content is sent
        """
        self.events = events
        self.extract_content = extract_content
        self.publisher = publisher
        self.published = 0
        self.running = False

    def process(self, event: ChangeEvent) -> bool:
        """
        Handle one change event.

        Returns:
            True if the content was published, False if a step failed
        """
        try:
            payload = decode_payload(self.extract_content())
        except RelayError as e:
            logger.error("Failed to safely read log file for event %d: %s", event.sequence, e)
            return False

        try:
            self.publisher.publish(payload)
        except RelayError as e:
            logger.error("Failed to publish log content for event %d: %s", event.sequence, e)
            return False

        self.published += 1
        return True

    def run(self) -> int:
        """
        Consume events until the source ends or stop() is called.

        Returns:
            Number of successful publishes
        """
        self.running = True
        try:
            for event in self.events:
                logger.debug("Change event %d for %s", event.sequence, event.path)
                self.process(event)
                if not self.running:
                    break
        finally:
            self.running = False
            self.close()
        return self.published

    def stop(self) -> None:
        """Stop after the event currently being processed."""
        self.running = False
        _close_source(self.events)

    def close(self) -> None:
        """Release the watch and the bus connection."""
        _close_source(self.events)
        self.publisher.close()


def _close_source(source: object) -> None:
    close = getattr(source, "close", None)
    if close is not None:
        close()


def create_relay_loop(config: Config) -> RelayLoop:
    """
    Factory function to create a relay loop from configuration.

    The watch is registered and the bus connected here, so setup failures
    surface before the loop starts.

    Args:
        config: Loaded configuration

    Returns:
        RelayLoop ready to run

    Raises:
        WatchSetupFailed: If the log file cannot be watched
        BusUnavailable: If the bus cannot be reached
    """
    publisher = SignalPublisher(config.channel.to_identity(), bus=config.bus)
    publisher.connect()

    watcher = ChangeWatcher(config.log_file)
    try:
        watcher.start()
    except RelayError:
        publisher.close()
        raise

    return RelayLoop(
        events=watcher,
        extract_content=partial(extract, config.log_file, config.buffer_size),
        publisher=publisher,
    )
