"""
Session facade used by application code.

A ``Session`` is created once by the application's top-level loop. Each
cycle the application calls ``set_get`` for every shared variable and then
``update`` once: a master stages values and broadcasts them, a slave
refreshes its store from the network and reads values back out.
"""

import logging
import struct
import time
from typing import Callable, Optional

from common.constants import NO_TRANSMIT_ADDRESS
from common.types import EngineState, SessionRole
from dgr.config import DGRSettings
from dgr.engine import ReplicationEngine
from dgr.exceptions import (
    BufferTooSmallError,
    ConfigurationError,
    RecordNotFoundError,
)
from dgr.record_store import RecordStore
from dgr.transport import MasterTransport, SlaveTransport

logger = logging.getLogger(__name__)


class Session:
    """Process-wide replication session for one role."""

    def __init__(
        self,
        settings: Optional[DGRSettings] = None,
        clock: Callable[[], float] = time.time,
        bind_address: Optional[str] = None
    ):
        """
        Args:
            settings: Session settings; read from the environment when omitted
            clock: Time source for liveness checks
            bind_address: Slave bind address; None binds the wildcard address
        """
        self.settings = settings
        self.clock = clock
        self.bind_address = bind_address
        self.role = SessionRole.DISABLED
        self.store = RecordStore()
        self.transport = None
        self.engine = ReplicationEngine(self.store, SessionRole.DISABLED)
        self._initialized = False

    def init(self) -> "Session":
        """
        Resolve configuration and open the role's transport.

        Calling ``init`` again releases the store and any open socket first.

        Raises:
            ConfigurationError: On missing port, resolution or bind failure
        """
        if self._initialized:
            self.close()
            self.store.clear()

        if self.settings is None:
            self.settings = DGRSettings.from_env()
        settings = self.settings

        self.store.max_records = settings.max_records
        self.role = SessionRole.DISABLED
        self.transport = None

        if settings.is_master:
            self._init_master(settings)
        elif settings.is_slave:
            self._init_slave(settings)

        if self.role == SessionRole.DISABLED:
            logger.warning("DGR is disabled; not a valid DGR environment")

        self.engine = ReplicationEngine(
            self.store,
            self.role,
            transport=self.transport,
            clock=self.clock,
            first_receive_timeout=settings.first_receive_timeout,
            staleness_window=settings.staleness_window,
            max_packet_bytes=settings.max_packet_bytes
        )
        self._initialized = True
        return self

    def _init_master(self, settings: DGRSettings) -> None:
        if settings.master_dest_port is None:
            raise ConfigurationError(
                "Master: no port was specified in the DGR_MASTER_DEST_PORT environment variable"
            )

        ip = settings.master_dest_ip
        if ip is None or ip == NO_TRANSMIT_ADDRESS:
            logger.info(
                f"Master: won't transmit since IP address was not provided or was {NO_TRANSMIT_ADDRESS}"
            )
            return

        logger.info(f"Master: preparing to send packets to {ip} port {settings.master_dest_port}")
        self.transport = MasterTransport.open(ip, settings.master_dest_port)
        self.role = SessionRole.MASTER

    def _init_slave(self, settings: DGRSettings) -> None:
        if settings.slave_listen_port is None:
            raise ConfigurationError("Slave: DGR_SLAVE_LISTEN_PORT was not set")

        logger.info(f"Slave: preparing to receive packets on port {settings.slave_listen_port}")
        self.transport = SlaveTransport.open(
            settings.slave_listen_port,
            bind_address=self.bind_address,
            max_packet_bytes=settings.max_packet_bytes
        )
        self.role = SessionRole.SLAVE

    def is_master(self) -> bool:
        """True when configured as master, including the no-transmit case."""
        return self.settings is not None and self.settings.is_master

    def is_enabled(self) -> bool:
        """True when replication is active for this process."""
        return self.role != SessionRole.DISABLED

    @property
    def state(self) -> EngineState:
        return self.engine.state

    def set_get(self, name: str, buffer, size: Optional[int] = None) -> bool:
        """
        Publish (master) or retrieve (slave) the variable ``name``.

        On a slave, any failure leaves ``buffer`` untouched and is logged.

        Args:
            name: Variable name shared by master and slaves
            buffer: Bytes-like source (master) or writable buffer (slave)
            size: Number of bytes of ``buffer`` in use; defaults to all of it

        Returns:
            True if the value was staged or copied into ``buffer``

        Raises:
            ValueError: On a master, if ``size`` does not fit ``buffer``
        """
        if self.role == SessionRole.DISABLED:
            return False

        view = memoryview(buffer).cast('B')
        if size is None:
            size = len(view)

        if self.role == SessionRole.MASTER:
            if not 0 <= size <= len(view):
                raise ValueError(
                    f"Cannot publish '{name}': size {size} does not fit a {len(view)} byte buffer"
                )
            self.store.write(name, view[:size])
            return True

        if not 0 <= size <= len(view):
            logger.warning(
                f"Slave: tried to get '{name}' with size {size} into a {len(view)} byte buffer"
            )
            return False

        return self._get(name, view, size)

    def _get(self, name: str, view: memoryview, size: int) -> bool:
        scratch = bytearray(size)
        try:
            copied = self.store.read(name, scratch, size)
        except RecordNotFoundError:
            logger.warning(f"Slave: tried to get '{name}' from DGR, but DGR didn't have it")
            return False
        except BufferTooSmallError as e:
            logger.warning(
                f"Slave: tried to get '{name}' from DGR, but the buffer is too small "
                f"({e.capacity} bytes for a {e.size} byte record)"
            )
            return False

        if copied != size:
            logger.warning(
                f"Slave: '{name}' size mismatch. Your buffer is {size} bytes but the "
                f"'{name}' record is {copied} bytes"
            )
            return False

        view[:size] = scratch
        return True

    def share_struct(self, name: str, fmt: str, *values) -> tuple:
        """
        Share a fixed-layout value packed with ``struct``.

        The master stages ``values`` and gets them back unchanged. A slave
        gets the replicated values, or ``values`` if the read failed.

        Args:
            name: Variable name
            fmt: ``struct`` format string, identical on master and slaves
            values: Values to publish, or fallbacks on a slave
        """
        buffer = bytearray(struct.pack(fmt, *values))
        if self.set_get(name, buffer) and self.role == SessionRole.SLAVE:
            return struct.unpack(fmt, buffer)
        return tuple(values)

    def update(self) -> int:
        """
        Send (master) or receive (slave) the record set. Call once per cycle.

        Raises:
            FatalReplicationError: When the run must end
        """
        return self.engine.update()

    def log_records(self) -> None:
        """Log the variables the session currently tracks."""
        if not self.is_enabled():
            logger.info("DGR is disabled or not initialized correctly")
            return
        logger.info("Current DGR list (index, size, name):")
        for index, record in enumerate(self.store):
            logger.info(f"{index:3d} {record.size:5d} {record.name}")
        if len(self.store) == 0:
            logger.info("[ the list is empty ]")

    def close(self) -> None:
        """Release the socket. The store is kept until re-initialization."""
        if self.transport is not None:
            self.transport.close()
            self.transport = None

    def __enter__(self) -> "Session":
        if not self._initialized:
            self.init()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
