"""
Datagram endpoints for the two session roles.

The master resolves a destination and sends unconnected datagrams to it.
The slave binds a local listening socket. Both walk every getaddrinfo()
candidate so dual-stack hosts work, and fail only when all are exhausted.
"""

import logging
import selectors
import socket
from typing import Optional, Tuple

from common.constants import MAX_PACKET_BYTES
from dgr.exceptions import (
    ConfigurationError,
    ReplicationNetworkError,
    ShortSendError,
)

logger = logging.getLogger(__name__)


class DatagramTransport:
    """Owns one UDP socket."""

    def __init__(self, sock: socket.socket):
        self._sock = sock

    @property
    def local_address(self) -> Tuple:
        return self._sock.getsockname()

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class MasterTransport(DatagramTransport):
    """Sends packets to a single resolved destination."""

    def __init__(self, sock: socket.socket, destination: Tuple):
        super().__init__(sock)
        self.destination = destination

    @classmethod
    def open(cls, host: str, port: int) -> "MasterTransport":
        """
        Resolve ``host``/``port`` and open a socket able to reach it.

        Args:
            host: Destination hostname or address
            port: Destination UDP port

        Returns:
            Ready transport

        Raises:
            ConfigurationError: If resolution fails or no socket can be opened
        """
        try:
            candidates = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_DGRAM)
        except socket.gaierror as e:
            raise ConfigurationError(f"Cannot resolve {host} port {port}: {e}") from e

        for family, socktype, proto, _, sockaddr in candidates:
            try:
                sock = socket.socket(family, socktype, proto)
            except OSError as e:
                logger.warning(f"Master: socket for {sockaddr} failed: {e}")
                continue
            logger.info(f"Master: sending to {sockaddr[0]} port {sockaddr[1]}")
            return cls(sock, sockaddr)

        raise ConfigurationError(f"Master: failed to open a socket for {host} port {port}")

    def send(self, packet: bytes) -> int:
        """
        Send one datagram to the destination.

        Raises:
            ReplicationNetworkError: If sendto() fails
            ShortSendError: If only part of the packet was sent
        """
        try:
            sent = self._sock.sendto(packet, self.destination)
        except OSError as e:
            raise ReplicationNetworkError(f"Master: sendto failed: {e}") from e

        if sent != len(packet):
            raise ShortSendError(
                f"Master: sent {sent} of {len(packet)} bytes in the message"
            )
        return sent


class SlaveTransport(DatagramTransport):
    """Receives packets on a bound local port."""

    def __init__(self, sock: socket.socket, max_packet_bytes: int = MAX_PACKET_BYTES):
        super().__init__(sock)
        self.max_packet_bytes = max_packet_bytes
        self._selector: Optional[selectors.BaseSelector] = None

    @classmethod
    def open(
        cls,
        port: int,
        bind_address: Optional[str] = None,
        max_packet_bytes: int = MAX_PACKET_BYTES
    ) -> "SlaveTransport":
        """
        Bind a datagram socket to ``port`` on ``bind_address``.

        Args:
            port: Local UDP port to listen on
            bind_address: Local address; None binds the wildcard address
            max_packet_bytes: Receive buffer size

        Returns:
            Bound transport

        Raises:
            ConfigurationError: If resolution fails or no candidate can be bound
        """
        try:
            candidates = socket.getaddrinfo(
                bind_address, port, socket.AF_UNSPEC, socket.SOCK_DGRAM, 0, socket.AI_PASSIVE
            )
        except socket.gaierror as e:
            raise ConfigurationError(f"Slave: cannot resolve listen port {port}: {e}") from e

        for family, socktype, proto, _, sockaddr in candidates:
            try:
                sock = socket.socket(family, socktype, proto)
            except OSError as e:
                logger.warning(f"Slave: socket for {sockaddr} failed: {e}")
                continue
            try:
                sock.bind(sockaddr)
            except OSError as e:
                sock.close()
                logger.warning(f"Slave: bind to {sockaddr} failed: {e}")
                continue
            logger.info(f"Slave: listening on {sockaddr[0]} port {sock.getsockname()[1]}")
            return cls(sock, max_packet_bytes)

        raise ConfigurationError(f"Slave: failed to bind socket on port {port}")

    def poll(self, timeout: float) -> bool:
        """
        Wait up to ``timeout`` seconds for a datagram to be readable.

        Raises:
            ReplicationNetworkError: If the poll call fails
        """
        try:
            if self._selector is None:
                selector = selectors.DefaultSelector()
                try:
                    selector.register(self._sock, selectors.EVENT_READ)
                except (OSError, ValueError):
                    selector.close()
                    raise
                self._selector = selector
            ready = self._selector.select(timeout)
        except (OSError, ValueError) as e:
            raise ReplicationNetworkError(f"Slave: poll failed: {e}") from e
        return bool(ready)

    def close(self) -> None:
        if self._selector is not None:
            self._selector.close()
            self._selector = None
        super().close()

    def receive(self) -> bytes:
        """
        Read one datagram.

        Raises:
            ReplicationNetworkError: If recvfrom() fails
        """
        try:
            packet, _ = self._sock.recvfrom(self.max_packet_bytes)
        except OSError as e:
            raise ReplicationNetworkError(f"Slave: recvfrom failed: {e}") from e
        return packet
