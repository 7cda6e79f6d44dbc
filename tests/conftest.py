"""Shared pytest fixtures for all tests."""

from typing import List

import pytest

from dgr.record_store import RecordStore
from dgr.transport import SlaveTransport


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSlaveTransport:
    """In-memory stand-in for SlaveTransport with a queue of pending datagrams."""

    def __init__(self, packets: List[bytes] = None):
        self.pending: List[bytes] = list(packets or [])
        self.poll_timeouts: List[float] = []
        self.received = 0

    def queue(self, packet: bytes) -> None:
        self.pending.append(packet)

    def poll(self, timeout: float) -> bool:
        self.poll_timeouts.append(timeout)
        return bool(self.pending)

    def receive(self) -> bytes:
        self.received += 1
        return self.pending.pop(0)

    def close(self) -> None:
        pass


class FakeMasterTransport:
    """Records every packet instead of sending it."""

    def __init__(self):
        self.sent: List[bytes] = []

    def send(self, packet: bytes) -> int:
        self.sent.append(packet)
        return len(packet)

    def close(self) -> None:
        pass


@pytest.fixture
def store():
    """
    Create an empty record store.

    Returns:
        RecordStore instance
    """
    return RecordStore()


@pytest.fixture
def clock():
    """
    Create a fake clock starting at t=1000s.

    Returns:
        FakeClock instance
    """
    return FakeClock()


@pytest.fixture
def fake_slave_transport():
    return FakeSlaveTransport()


@pytest.fixture
def fake_master_transport():
    return FakeMasterTransport()


@pytest.fixture
def loopback_slave():
    """
    Bind a real slave transport on an ephemeral loopback port.

    Yields:
        SlaveTransport bound to 127.0.0.1
    """
    transport = SlaveTransport.open(0, bind_address="127.0.0.1")
    yield transport
    transport.close()
