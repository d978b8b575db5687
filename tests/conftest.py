"""
Pytest configuration and fixtures for Logrelay tests.
"""

import logging
from collections import deque
from typing import Any

import pytest
from jeepney import HeaderFields, Message, MessageType, new_error, new_method_return

from logrelay.core import ChannelIdentity
from logrelay.errors import BusUnavailable


def _parse_rule(rule: str) -> dict[str, str]:
    parts = {}
    for item in rule.split(","):
        key, _, value = item.partition("=")
        parts[key] = value.strip("'")
    return parts


class FakeConnection:
    """Stands in for jeepney's blocking DBusConnection."""

    def __init__(self, bus: "FakeBus", unique_name: str) -> None:
        self.bus = bus
        self.unique_name = unique_name
        self.sent: list[Message] = []
        self.inbox: deque[Message] = deque()
        self.rules: list[dict[str, str]] = []
        self.closed = False
        self.send_error: OSError | None = None

    def send(self, message: Message, serial: int | None = None) -> None:
        if self.closed:
            raise OSError("connection closed")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)
        self.bus.deliver(self, message)

    def send_and_get_reply(self, message: Message, *, timeout: float | None = None) -> Message:
        if self.bus.add_match_error is not None:
            return new_error(message, self.bus.add_match_error)
        self.rules.append(_parse_rule(message.body[0]))
        return new_method_return(message)

    def receive(self, *, timeout: float | None = None) -> Message:
        if self.closed:
            raise OSError("connection closed")
        if not self.inbox:
            raise TimeoutError
        return self.inbox.popleft()

    def close(self) -> None:
        self.closed = True

    def matches(self, message: Message) -> bool:
        fields = message.header.fields
        if message.header.message_type != MessageType.signal:
            return False
        return any(
            rule.get("interface") == fields.get(HeaderFields.interface)
            and rule.get("member") == fields.get(HeaderFields.member)
            for rule in self.rules
        )


class FakeBus:
    """In-process broadcast bus connecting FakeConnections."""

    def __init__(self) -> None:
        self.connections: list[FakeConnection] = []
        self.available = True
        self.add_match_error: str | None = None

    def connect(self, bus: str = "SESSION") -> FakeConnection:
        if not self.available:
            raise BusUnavailable(f"No address known for the {bus} bus")
        conn = FakeConnection(self, f":1.{len(self.connections) + 1}")
        self.connections.append(conn)
        return conn

    def deliver(self, sender: FakeConnection, message: Message) -> None:
        message.header.fields[HeaderFields.sender] = sender.unique_name
        for conn in self.connections:
            if not conn.closed and conn.matches(message):
                conn.inbox.append(message)


@pytest.fixture
def fake_bus(monkeypatch: pytest.MonkeyPatch) -> FakeBus:
    """Route publisher and subscriber connections to an in-process bus."""
    bus = FakeBus()

    def fake_connect(address: str = "SESSION", **_kwargs: Any) -> FakeConnection:
        return bus.connect(address)

    monkeypatch.setattr("logrelay.publisher.connect", fake_connect)
    monkeypatch.setattr("logrelay.subscriber.connect", fake_connect)
    return bus


@pytest.fixture
def channel() -> ChannelIdentity:
    """Channel identity used by tests."""
    return ChannelIdentity(
        object_path="/org/example/LogrelayTest",
        interface="org.example.LogrelayTest",
        member="NewLog",
    )


@pytest.fixture(autouse=True)
def restore_logrelay_logger() -> Any:
    """Undo setup_logging() so caplog keeps seeing logrelay records."""
    logger = logging.getLogger("logrelay")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
