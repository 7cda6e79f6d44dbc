"""Per-cycle replication: master broadcast, slave drain-to-latest with liveness checks."""

import logging
import time
from typing import Callable, Optional

from common.constants import (
    FIRST_RECEIVE_TIMEOUT_SECONDS,
    MAX_PACKET_BYTES,
    STALENESS_WINDOW_SECONDS,
)
from common.types import EngineState, SessionRole
from dgr import codec
from dgr.exceptions import LivenessTimeoutError
from dgr.record_store import RecordStore

logger = logging.getLogger(__name__)


class ReplicationEngine:
    """
    Runs one replication step per call to ``update()``.

    The master encodes the full store and sends a single datagram. The slave
    waits for its first packet (bounded by ``first_receive_timeout``), then
    polls without blocking, drains every queued datagram and merges only the
    newest one into the store.
    """

    def __init__(
        self,
        store: RecordStore,
        role: SessionRole,
        transport=None,
        clock: Callable[[], float] = time.time,
        first_receive_timeout: float = FIRST_RECEIVE_TIMEOUT_SECONDS,
        staleness_window: float = STALENESS_WINDOW_SECONDS,
        max_packet_bytes: int = MAX_PACKET_BYTES
    ):
        """
        Args:
            store: Record store shared with the session facade
            role: Session role; DISABLED makes every update a no-op
            transport: MasterTransport or SlaveTransport matching ``role``
            clock: Returns the current time in seconds
            first_receive_timeout: Seconds a slave waits for its first packet
            staleness_window: Seconds of silence tolerated after the first packet
            max_packet_bytes: Largest payload a decoded record may declare
        """
        self.store = store
        self.role = role
        self.transport = transport
        self.clock = clock
        self.first_receive_timeout = first_receive_timeout
        self.staleness_window = staleness_window
        self.max_packet_bytes = max_packet_bytes
        self.last_receive: float = 0.0

    @property
    def state(self) -> EngineState:
        if self.role == SessionRole.MASTER:
            return EngineState.MASTER_READY
        if self.role == SessionRole.SLAVE:
            if self.last_receive == 0:
                return EngineState.SLAVE_AWAITING_FIRST
            return EngineState.SLAVE_STEADY
        return EngineState.DISABLED

    def update(self) -> int:
        """
        Run one cycle for the configured role.

        Returns:
            Bytes sent (master) or records applied (slave); 0 when nothing happened

        Raises:
            FatalReplicationError: On network failure or liveness violation
        """
        if self.role == SessionRole.MASTER:
            return self.send()
        if self.role == SessionRole.SLAVE:
            return self.receive()
        return 0

    def send(self) -> int:
        if len(self.store) == 0:
            return 0
        packet = codec.encode(self.store)
        if not packet:
            return 0
        return self.transport.send(packet)

    def receive(self) -> int:
        if self.last_receive == 0:
            if not self.transport.poll(self.first_receive_timeout):
                raise LivenessTimeoutError(
                    f"Slave: never received anything and timed out "
                    f"({self.first_receive_timeout:.1f} second timeout)",
                    self.first_receive_timeout
                )
        elif not self.transport.poll(0):
            silence = self.clock() - self.last_receive
            if silence > self.staleness_window:
                raise LivenessTimeoutError(
                    f"Slave: no packets within {self.staleness_window:.1f} seconds "
                    f"after receiving earlier ones. Did the master or relay die?",
                    self.staleness_window
                )
            return 0

        packet = self._drain()
        self.last_receive = self.clock()
        applied = codec.apply_packet(self.store, packet, self.max_packet_bytes)
        logger.debug(f"Slave: applied {applied} record(s) from {len(packet)} byte packet")
        return applied

    def _drain(self) -> bytes:
        """Read until nothing is pending and return the newest datagram."""
        packet: Optional[bytes] = self.transport.receive()
        skipped = 0
        while self.transport.poll(0):
            packet = self.transport.receive()
            skipped += 1
        if skipped:
            logger.debug(f"Slave: skipped {skipped} stale packet(s)")
        return packet
