"""Project-wide constants (wire format, limits, timeouts, environment names)."""

MAX_NAME_LENGTH: int = 1023
MAX_RECORDS: int = 1024

# Native byte order, standard 4-byte signed int. Peers must share endianness.
SIZE_FIELD_FORMAT: str = "=i"
NAME_TERMINATOR: bytes = b"\x00"

MAX_PACKET_BYTES: int = 1024 * 1024  # 1 MiB receive buffer

FIRST_RECEIVE_TIMEOUT_SECONDS: float = 10.0
STALENESS_WINDOW_SECONDS: float = 15.0

NO_TRANSMIT_ADDRESS: str = "0.0.0.0"

MODE_MASTER: str = "master"
MODE_SLAVE: str = "slave"

ENV_MODE: str = "DGR_MODE"
ENV_MASTER_DEST_IP: str = "DGR_MASTER_DEST_IP"
ENV_MASTER_DEST_PORT: str = "DGR_MASTER_DEST_PORT"
ENV_SLAVE_LISTEN_PORT: str = "DGR_SLAVE_LISTEN_PORT"
ENV_FIRST_RECEIVE_TIMEOUT: str = "DGR_FIRST_RECEIVE_TIMEOUT"
ENV_STALENESS_WINDOW: str = "DGR_STALENESS_WINDOW"
ENV_MAX_RECORDS: str = "DGR_MAX_RECORDS"
ENV_MAX_PACKET_BYTES: str = "DGR_MAX_PACKET_BYTES"
