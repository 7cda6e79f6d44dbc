"""
Wire codec for the record store.

A packet is the concatenation of every record, in store order:

    name bytes, NUL terminator, size (4-byte signed int, native byte order),
    size bytes of raw payload

There is no packet header or trailer.
"""

import struct
from typing import List, Tuple

from common.constants import (
    MAX_NAME_LENGTH,
    MAX_PACKET_BYTES,
    NAME_TERMINATOR,
    SIZE_FIELD_FORMAT,
)
from dgr.exceptions import ProtocolError
from dgr.record_store import RecordStore

SIZE_FIELD = struct.Struct(SIZE_FIELD_FORMAT)


def encoded_length(store: RecordStore) -> int:
    """Number of bytes ``encode(store)`` will produce."""
    return sum(
        len(record.name.encode("utf-8")) + 1 + SIZE_FIELD.size + record.size
        for record in store
    )


def encode(store: RecordStore) -> bytes:
    """
    Serialize the whole store into one packet.

    Args:
        store: Record store to serialize

    Returns:
        Packet bytes (empty for an empty store)
    """
    buffer = bytearray(encoded_length(store))
    offset = 0
    for record in store:
        name = record.name.encode("utf-8")
        buffer[offset:offset + len(name)] = name
        offset += len(name)
        buffer[offset] = 0
        offset += 1
        SIZE_FIELD.pack_into(buffer, offset, record.size)
        offset += SIZE_FIELD.size
        buffer[offset:offset + record.size] = record.payload
        offset += record.size
    return bytes(buffer)


def decode(packet: bytes, max_payload: int = MAX_PACKET_BYTES) -> List[Tuple[str, bytes]]:
    """
    Parse a packet into (name, payload) pairs.

    The declared sizes are trusted, but every read is bounds-checked and a
    declared size above ``max_payload`` is rejected.

    Args:
        packet: Raw datagram
        max_payload: Largest payload a single record may declare

    Returns:
        Records in packet order

    Raises:
        ProtocolError: If the packet is truncated or malformed
    """
    data = bytes(packet)
    records: List[Tuple[str, bytes]] = []
    offset = 0
    end = len(data)

    while offset < end:
        terminator = data.find(NAME_TERMINATOR, offset)
        if terminator == -1:
            raise ProtocolError(f"Unterminated record name at offset {offset}")
        if terminator - offset > MAX_NAME_LENGTH:
            raise ProtocolError(f"Record name at offset {offset} exceeds {MAX_NAME_LENGTH} bytes")

        try:
            name = data[offset:terminator].decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Record name at offset {offset} is not valid UTF-8: {e}") from e
        offset = terminator + 1

        if offset + SIZE_FIELD.size > end:
            raise ProtocolError(f"Truncated size field for '{name}'")
        (size,) = SIZE_FIELD.unpack_from(data, offset)
        offset += SIZE_FIELD.size

        if size < 0 or size > max_payload:
            raise ProtocolError(f"Record '{name}' declares invalid size {size}")
        if offset + size > end:
            raise ProtocolError(
                f"Record '{name}' declares {size} bytes but only {end - offset} remain"
            )

        records.append((name, data[offset:offset + size]))
        offset += size

    return records


def apply_packet(store: RecordStore, packet: bytes, max_payload: int = MAX_PACKET_BYTES) -> int:
    """
    Decode a packet and merge it into ``store``.

    Variables missing from the packet keep their last known value.

    Returns:
        Number of records applied
    """
    records = decode(packet, max_payload)
    for name, payload in records:
        store.write(name, payload)
    return len(records)
