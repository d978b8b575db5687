"""
D-Bus signal publisher for Logrelay.
"""

from jeepney import DBusAddress, Message, new_signal
from jeepney.io.blocking import DBusConnection

from logrelay.bus import SESSION_BUS, connect
from logrelay.core import BusMessage, ChannelIdentity, Publisher
from logrelay.errors import BusUnavailable, EncodingFailed
from logrelay.logging_config import get_logger

logger = get_logger(__name__)


class SignalPublisher(Publisher):
    """
    Broadcasts payloads as a D-Bus signal with one string argument.

    The connection is opened on first use and reused afterwards. If a send
    fails the connection is dropped so that the next publish reconnects.
    """

    def __init__(self, channel: ChannelIdentity, bus: str = SESSION_BUS) -> None:
        super().__init__(channel)
        self.bus = bus
        self._conn: DBusConnection | None = None

    def connect(self) -> DBusConnection:
        """Open the bus connection now instead of on the first publish."""
        if self._conn is None:
            self._conn = connect(self.bus)
        return self._conn

    def close(self) -> None:
        """Close the bus connection if one is open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def publish(self, payload: str) -> None:
        """Send payload to every current subscriber of the channel."""
        message = self._build(BusMessage(channel=self.channel, argument=payload))
        conn = self.connect()

        try:
            # Blocking send writes the whole message before returning
            conn.send(message)
        except OSError as e:
            self.close()
            raise BusUnavailable(f"Failed to send D-Bus signal: {e}") from e

        logger.info("Sent D-Bus signal %s with log: %s", self.channel.member, payload)

    @staticmethod
    def _build(message: BusMessage) -> Message:
        """Serialize a BusMessage into a jeepney signal."""
        argument = message.argument
        if not isinstance(argument, str):
            raise EncodingFailed(f"Payload must be a string, got {type(argument).__name__}")
        if "\0" in argument:
            raise EncodingFailed("Payload contains a NUL character")
        try:
            argument.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingFailed(f"Payload is not valid UTF-8: {e}") from e

        emitter = DBusAddress(message.channel.object_path, interface=message.channel.interface)
        return new_signal(emitter, message.channel.member, "s", (argument,))


__all__ = ["SignalPublisher"]
