"""
Core interfaces and data structures for the Logrelay pipeline.

The relay side is built from three pieces:
- Change watcher: when to read
- Extractor: what to read
- Publisher: where to send it

The dashboard side consumes what a Subscriber yields.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass

from logrelay.errors import DecodeFailed

DEFAULT_OBJECT_PATH = "/com/example/LogWatcher"
DEFAULT_INTERFACE = "com.example.LogWatcher"
DEFAULT_MEMBER = "NewLog"


@dataclass(frozen=True)
class ChannelIdentity:
    """The (object path, interface, member) triple a signal is addressed by."""
    object_path: str = DEFAULT_OBJECT_PATH
    interface: str = DEFAULT_INTERFACE
    member: str = DEFAULT_MEMBER

    def match_rule(self) -> str:
        """Bus match rule selecting this channel's signals from any sender."""
        return f"type='signal',interface='{self.interface}',member='{self.member}'"


@dataclass(frozen=True)
class ChangeEvent:
    """The watched file may have changed; re-read it to find out how."""
    path: str
    sequence: int


@dataclass(frozen=True)
class BusMessage:
    """A signal on a channel carrying exactly one string argument."""
    channel: ChannelIdentity
    argument: str


def decode_payload(raw: bytes) -> str:
    """
    Turn extracted bytes into the text that gets published.

    Everything from the first NUL onwards is dropped. Bytes that are not
    valid UTF-8 (for instance a character cut in half by truncation) are
    replaced with U+FFFD.
    """
    content, _, _ = raw.partition(b"\0")
    return content.decode("utf-8", errors="replace")


class Publisher(ABC):
    """
    Base class for signal publishers.

    Publishers broadcast a payload on a fixed channel. Delivery is
    fire-and-forget: returning means the message left this process,
    not that anyone received it.
    """

    def __init__(self, channel: ChannelIdentity):
        self.channel = channel

    @abstractmethod
    def publish(self, payload: str) -> None:
        """
        Broadcast one payload.

        Raises:
            BusUnavailable: If the bus cannot be reached
            EncodingFailed: If the payload cannot be serialized
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any bus connection held by the publisher."""


class Subscriber(ABC):
    """
    Base class for signal subscribers.

    Iterating a subscriber yields received payloads as strings. A message
    that matched the channel but could not be decoded is yielded as a
    DecodeFailed instance so the consumer can log it and carry on.
    """

    def __init__(self, channel: ChannelIdentity):
        self.channel = channel

    @abstractmethod
    def __iter__(self) -> Iterator[str | DecodeFailed]:
        raise NotImplementedError

    def close(self) -> None:
        """Release the subscription and end iteration."""
