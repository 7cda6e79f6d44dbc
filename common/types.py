"""Shared data type definitions (Record, SessionRole, EngineState)."""

from dataclasses import dataclass
from enum import Enum


@dataclass
class Record:
    """
    A named variable tracked by the record store.

    The store owns ``payload``; callers only ever receive copies.
    """
    name: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


class SessionRole(str, Enum):
    """Role of the process, fixed once initialization completes."""
    MASTER = "master"
    SLAVE = "slave"
    DISABLED = "disabled"


class EngineState(str, Enum):
    """Replication engine states."""
    DISABLED = "disabled"
    MASTER_READY = "master_ready"
    SLAVE_AWAITING_FIRST = "slave_awaiting_first"
    SLAVE_STEADY = "slave_steady"
