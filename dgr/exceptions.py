"""Custom exception classes for DGR replication."""


class DGRException(Exception):
    """
    Base exception class for all DGR-related errors.
    """
    pass


class FatalReplicationError(DGRException):
    """
    Raised for conditions that must end the run.

    The session owner converts these into a process exit at its boundary.
    """
    exit_code = 1


class ConfigurationError(FatalReplicationError):
    """
    Raised when required configuration is missing or invalid, or when the
    transport cannot be resolved or bound.
    """
    pass


class CapacityExceededError(ConfigurationError):
    """
    Raised when a new variable would exceed the record store capacity.
    """
    pass


class ReplicationNetworkError(FatalReplicationError):
    """
    Raised when a send, poll or receive call fails.
    """
    pass


class ShortSendError(ReplicationNetworkError):
    """
    Raised when fewer bytes were transmitted than were encoded.
    """
    pass


class LivenessTimeoutError(FatalReplicationError):
    """
    Raised when the master never appeared or has gone silent.
    """

    def __init__(self, message: str, threshold: float):
        super().__init__(message)
        self.threshold = threshold


class ProtocolError(FatalReplicationError):
    """
    Raised when a received packet cannot be decoded.
    """
    pass


class RecordReadError(DGRException):
    """
    Base class for recoverable slave-side read failures.
    """
    pass


class RecordNotFoundError(RecordReadError):
    """
    Raised when the requested variable has not been received.
    """

    def __init__(self, name: str):
        super().__init__(f"Record '{name}' not found")
        self.name = name


class BufferTooSmallError(RecordReadError):
    """
    Raised when the destination buffer cannot hold the whole record.
    """

    def __init__(self, name: str, capacity: int, size: int):
        super().__init__(
            f"Record '{name}' is {size} bytes but the buffer holds {capacity}"
        )
        self.name = name
        self.capacity = capacity
        self.size = size
