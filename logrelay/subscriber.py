"""
D-Bus signal subscriber for Logrelay.
"""

import threading
from collections.abc import Iterator

from jeepney import HeaderFields, Message, MessageType, message_bus
from jeepney.io.blocking import DBusConnection
from jeepney.wrappers import DBusErrorResponse, unwrap_msg

from logrelay.bus import SESSION_BUS, connect
from logrelay.core import BusMessage, ChannelIdentity, Subscriber
from logrelay.errors import BusUnavailable, DecodeFailed
from logrelay.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 0.1
ADD_MATCH_TIMEOUT = 5.0


class SignalSubscriber(Subscriber):
    """
    Receives payloads broadcast on a channel.

    Signals are selected by interface and member name only; the sender is
    not checked, so any process on the bus may publish to the channel.

    Iteration polls the connection without blocking and sleeps for
    poll_interval whenever nothing is queued. close() interrupts the sleep
    and ends iteration.

    Config:
        channel: Channel to subscribe to
        bus: "SESSION", "SYSTEM" or a D-Bus address
        poll_interval: Seconds to sleep when no message is waiting
    """

    def __init__(
        self,
        channel: ChannelIdentity,
        bus: str = SESSION_BUS,
        poll_interval: float = DEFAULT_POLL_INTERVAL
    ) -> None:
        super().__init__(channel)
        self.bus = bus
        self.poll_interval = poll_interval
        self._conn: DBusConnection | None = None
        self._stopped = threading.Event()

    def connect(self) -> None:
        """
        Connect to the bus and install the channel's match rule.

        Raises:
            BusUnavailable: If the bus is unreachable or rejects the rule
        """
        if self._conn is not None:
            return
        if self._stopped.is_set():
            raise BusUnavailable("Subscriber is closed and cannot reconnect")

        conn = connect(self.bus)
        rule = self.channel.match_rule()
        try:
            unwrap_msg(conn.send_and_get_reply(message_bus.AddMatch(rule), timeout=ADD_MATCH_TIMEOUT))
        except DBusErrorResponse as e:
            conn.close()
            raise BusUnavailable(f"D-Bus AddMatch error: {e}") from e
        except OSError as e:
            conn.close()
            raise BusUnavailable(f"D-Bus AddMatch failed: {e}") from e

        self._conn = conn
        logger.info("Listening for D-Bus signals matching %s", rule)

    def close(self) -> None:
        """Stop iterating and close the connection."""
        self._stopped.set()
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SignalSubscriber":
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[str | DecodeFailed]:
        if self._stopped.is_set():
            return
        self.connect()
        while not self._stopped.is_set():
            item = self.receive_one()
            if item is None:
                self._stopped.wait(self.poll_interval)
                continue
            yield item

    def receive_one(self) -> str | DecodeFailed | None:
        """
        Pop the next channel signal without blocking.

        Returns:
            The payload string, a DecodeFailed for a malformed channel
            signal, or None if no channel signal is queued

        Raises:
            BusUnavailable: If the connection was lost
        """
        conn = self._conn
        if conn is None:
            if self._stopped.is_set():
                return None
            raise BusUnavailable("Subscriber is not connected")

        while True:
            try:
                msg = conn.receive(timeout=0)
            except TimeoutError:
                return None
            except (OSError, ValueError) as e:
                # close() from another thread can pull the socket out from
                # under a receive; jeepney then fails with ValueError
                if self._stopped.is_set():
                    return None
                raise BusUnavailable(f"Lost D-Bus connection: {e}") from e

            if not self._is_channel_signal(msg):
                logger.debug(
                    "Ignoring %s %s.%s",
                    msg.header.message_type.name,
                    msg.header.fields.get(HeaderFields.interface),
                    msg.header.fields.get(HeaderFields.member)
                )
                continue

            try:
                return self._decode(msg).argument
            except DecodeFailed as e:
                return e

    def _is_channel_signal(self, msg: Message) -> bool:
        fields = msg.header.fields
        return (
            msg.header.message_type == MessageType.signal
            and fields.get(HeaderFields.interface) == self.channel.interface
            and fields.get(HeaderFields.member) == self.channel.member
        )

    def _decode(self, msg: Message) -> BusMessage:
        """Check the body is a single string and wrap it."""
        signature = msg.header.fields.get(HeaderFields.signature, "")
        body = msg.body
        if signature != "s" or len(body) != 1 or not isinstance(body[0], str):
            sender = msg.header.fields.get(HeaderFields.sender, "unknown sender")
            raise DecodeFailed(
                f"Failed to get message arguments from {sender}: "
                f"expected signature 's', got '{signature}'"
            )
        return BusMessage(channel=self.channel, argument=body[0])


__all__ = ["SignalSubscriber"]
