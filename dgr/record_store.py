"""In-memory record store: variable name -> current payload bytes."""

import logging
from typing import Iterator, List, Optional

from common.constants import MAX_NAME_LENGTH, MAX_RECORDS
from common.types import Record
from dgr.exceptions import (
    BufferTooSmallError,
    CapacityExceededError,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Ordered, capacity-bounded collection of records.

    Insertion order follows the first write of each name and is the order
    records are serialized in. Names are unique. There is no deletion; the
    whole store is released by ``clear()``.
    """

    def __init__(self, max_records: int = MAX_RECORDS):
        """
        Initialize empty record store.

        Args:
            max_records: Hard cap on the number of distinct names
        """
        self.max_records = max_records
        self._records: List[Record] = []

    def find(self, name: str) -> Optional[int]:
        """
        Locate a record by exact name.

        Args:
            name: Variable name

        Returns:
            Index of the record, or None if the name is unknown
        """
        for index, record in enumerate(self._records):
            if record.name == name:
                return index
        return None

    def write(self, name: str, data: bytes) -> None:
        """
        Store a copy of ``data`` under ``name``.

        Appends a new record for an unknown name, otherwise replaces the
        payload of the existing one.

        Args:
            name: Variable name (at most 1023 characters, no NUL)
            data: Bytes-like payload

        Raises:
            CapacityExceededError: If a new name would exceed the capacity
            ValueError: If the name is not representable on the wire
        """
        payload = bytes(data)
        index = self.find(name)

        if index is None:
            _validate_name(name)
            if len(self._records) >= self.max_records:
                raise CapacityExceededError(
                    f"Cannot add '{name}': record store is limited to "
                    f"{self.max_records} variables"
                )
            logger.debug(f"New record '{name}' at index {len(self._records)} ({len(payload)} bytes)")
            self._records.append(Record(name=name, payload=payload))
            return

        record = self._records[index]
        if record.size != len(payload):
            logger.debug(f"Record '{name}' resized from {record.size} to {len(payload)} bytes")
        record.payload = payload

    def read(self, name: str, dest, capacity: Optional[int] = None) -> int:
        """
        Copy a record's payload into a caller-owned buffer.

        Either the whole payload is copied or nothing is.

        Args:
            name: Variable name
            dest: Writable buffer (bytearray, memoryview, array, ...)
            capacity: Usable bytes in ``dest``; defaults to its full length

        Returns:
            Number of bytes copied

        Raises:
            RecordNotFoundError: If the name is unknown
            BufferTooSmallError: If the record does not fit in ``capacity``
        """
        index = self.find(name)
        if index is None:
            raise RecordNotFoundError(name)

        record = self._records[index]
        view = memoryview(dest).cast('B')
        if capacity is None:
            capacity = len(view)
        capacity = min(capacity, len(view))

        if capacity < record.size:
            raise BufferTooSmallError(name, capacity, record.size)

        view[:record.size] = record.payload
        return record.size

    def get(self, name: str) -> Optional[bytes]:
        """Return the payload stored under ``name``, or None."""
        index = self.find(name)
        if index is None:
            return None
        return self._records[index].payload

    def clear(self) -> None:
        """Release every record."""
        self._records.clear()

    def names(self) -> List[str]:
        return [record.name for record in self._records]

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None


def _validate_name(name: str) -> None:
    if "\x00" in name:
        raise ValueError(f"Record name {name!r} contains a NUL character")
    if len(name.encode("utf-8")) > MAX_NAME_LENGTH:
        raise ValueError(
            f"Record name is longer than {MAX_NAME_LENGTH} bytes: {name[:32]!r}..."
        )
