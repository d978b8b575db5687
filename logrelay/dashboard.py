"""
Dashboard loop that prints every payload received from the bus.
"""

from collections.abc import Callable, Iterable

from logrelay.config import Config
from logrelay.errors import DecodeFailed
from logrelay.logging_config import get_logger
from logrelay.subscriber import SignalSubscriber

logger = get_logger(__name__)


def print_message(payload: str) -> None:
    """Print a received payload to stdout."""
    print(f"Received message: {payload}", flush=True)


class DashboardLoop:
    """
    Hands each received payload to a consumer callback.

    Malformed messages arrive as DecodeFailed items; they are logged and
    skipped without ending the loop.
    """

    def __init__(
        self,
        messages: Iterable[str | DecodeFailed],
        consume: Callable[[str], None] = print_message
    ):
        self.messages = messages
        self.consume = consume
        self.received = 0
        self.failed = 0
        self.running = False

    def run(self) -> int:
        """
        Consume messages until the source ends or stop() is called.

        Returns:
            Number of payloads handed to the consumer
        """
        self.running = True
        try:
            for item in self.messages:
                if isinstance(item, DecodeFailed):
                    self.failed += 1
                    logger.error("%s", item)
                else:
                    self.received += 1
                    self.consume(item)
                if not self.running:
                    break
        finally:
            self.running = False
            self.close()
        return self.received

    def stop(self) -> None:
        """Stop after the message currently being handled."""
        self.running = False
        self.close()

    def close(self) -> None:
        """Release the bus subscription."""
        close = getattr(self.messages, "close", None)
        if close is not None:
            close()


def create_dashboard_loop(
    config: Config,
    consume: Callable[[str], None] = print_message
) -> DashboardLoop:
    """
    Factory function to create a dashboard loop from configuration.

    Raises:
        BusUnavailable: If the bus cannot be reached or the match rule is rejected
    """
    subscriber = SignalSubscriber(
        config.channel.to_identity(),
        bus=config.bus,
        poll_interval=config.poll_interval,
    )
    subscriber.connect()
    return DashboardLoop(messages=subscriber, consume=consume)
