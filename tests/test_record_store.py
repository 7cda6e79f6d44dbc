"""Unit tests for the record store."""

import pytest

from dgr.exceptions import (
    BufferTooSmallError,
    CapacityExceededError,
    RecordNotFoundError,
)
from dgr.record_store import RecordStore


class TestRecordStoreWrite:
    """Test write() and find()."""

    def test_write_new_record(self, store):
        store.write("x", b"\x01\x02\x03\x04")

        assert len(store) == 1
        assert store.find("x") == 0
        assert store.get("x") == b"\x01\x02\x03\x04"

    def test_find_unknown_returns_none(self, store):
        store.write("x", b"a")

        assert store.find("y") is None
        assert "y" not in store

    def test_insertion_order_follows_first_write(self, store):
        store.write("b", b"1")
        store.write("a", b"2")
        store.write("b", b"3")

        assert store.names() == ["b", "a"]

    def test_overwrite_with_resize(self, store):
        """A resized write replaces the payload entirely."""
        store.write("x", b"\xaa" * 4)
        store.write("x", bytes(range(12)))

        dest = bytearray(12)
        copied = store.read("x", dest)

        assert copied == 12
        assert bytes(dest) == bytes(range(12))
        assert len(store) == 1

    def test_write_copies_caller_buffer(self, store):
        data = bytearray(b"abcd")
        store.write("x", data)
        data[0] = ord("z")

        assert store.get("x") == b"abcd"

    def test_capacity_exceeded_is_fatal(self):
        store = RecordStore(max_records=2)
        store.write("a", b"1")
        store.write("b", b"2")

        with pytest.raises(CapacityExceededError):
            store.write("c", b"3")

    def test_existing_name_allowed_at_capacity(self):
        store = RecordStore(max_records=1)
        store.write("a", b"1")
        store.write("a", b"22")

        assert store.get("a") == b"22"

    def test_name_with_nul_rejected(self, store):
        with pytest.raises(ValueError):
            store.write("bad\x00name", b"1")

    def test_name_too_long_rejected(self, store):
        with pytest.raises(ValueError):
            store.write("n" * 1024, b"1")

    def test_clear_releases_records(self, store):
        store.write("a", b"1")
        store.clear()

        assert len(store) == 0
        assert store.find("a") is None


class TestRecordStoreRead:
    """Test read() copy semantics."""

    def test_read_returns_bytes_copied(self, store):
        store.write("x", b"hello")
        dest = bytearray(8)

        assert store.read("x", dest) == 5
        assert bytes(dest[:5]) == b"hello"

    def test_read_missing_raises_not_found(self, store):
        with pytest.raises(RecordNotFoundError):
            store.read("missing", bytearray(4))

    def test_buffer_too_small_leaves_buffer_unmodified(self, store):
        store.write("x", b"12345678")
        dest = bytearray(b"\xff" * 4)

        with pytest.raises(BufferTooSmallError) as excinfo:
            store.read("x", dest, 4)

        assert bytes(dest) == b"\xff" * 4
        assert excinfo.value.size == 8
        assert excinfo.value.capacity == 4

    def test_capacity_smaller_than_buffer(self, store):
        store.write("x", b"12345678")
        dest = bytearray(16)

        with pytest.raises(BufferTooSmallError):
            store.read("x", dest, 4)

        assert bytes(dest) == bytes(16)

    def test_read_into_memoryview(self, store):
        store.write("x", b"ab")
        dest = bytearray(4)

        store.read("x", memoryview(dest)[1:3])

        assert bytes(dest) == b"\x00ab\x00"
