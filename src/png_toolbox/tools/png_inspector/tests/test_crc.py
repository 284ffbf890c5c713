"""Tests for the table-driven CRC-32 engine."""

from __future__ import annotations

import zlib

import pytest

from png_toolbox.tools.png_inspector._crc import (
    CRC32_POLYNOMIAL,
    CRC32_SEED,
    CRC32_TABLE,
    crc32,
    update_crc,
)


class TestCrcTable:
    """Tests for the precomputed lookup table."""

    def test_has_256_entries(self) -> None:
        """One entry per byte value."""
        assert len(CRC32_TABLE) == 256

    def test_known_entries(self) -> None:
        """Entry 0 is zero; entry 128 is the polynomial itself."""
        assert CRC32_TABLE[0] == 0
        assert CRC32_TABLE[128] == CRC32_POLYNOMIAL
        assert CRC32_TABLE[1] == 0x77073096

    def test_table_is_immutable(self) -> None:
        """The shared table cannot be modified."""
        with pytest.raises(TypeError):
            CRC32_TABLE[0] = 1  # type: ignore[index]


class TestCrc32:
    """Tests for ``crc32`` and ``update_crc``."""

    def test_check_value(self) -> None:
        """The standard check string yields the standard CRC-32 check value."""
        assert crc32(b"123456789") == 0xCBF43926

    def test_empty_input(self) -> None:
        """The empty range is well-defined: seed XOR seed."""
        assert crc32(b"") == 0
        assert update_crc(CRC32_SEED, b"") == CRC32_SEED

    def test_iend_chunk_crc(self) -> None:
        """The fixed CRC of every IEND chunk."""
        assert crc32(b"IEND") == 0xAE426082

    @pytest.mark.parametrize("payload", [b"IHDR\x00\x00\x00\x01", bytes(range(256)), b"\xff" * 1000])
    def test_matches_zlib(self, payload: bytes) -> None:
        """Results agree with ``zlib.crc32``."""
        assert crc32(payload) == zlib.crc32(payload)

    def test_deterministic(self) -> None:
        """Two computations over the same bytes agree."""
        data = b"tEXtComment\x00hello"
        assert crc32(data) == crc32(data)

    def test_accepts_memoryview_and_bytearray(self) -> None:
        """Any buffer of byte values can be checksummed."""
        data = b"IDAT\x78\x9c"
        assert crc32(memoryview(data)) == crc32(bytearray(data)) == crc32(data)

    def test_incremental_update(self) -> None:
        """Folding two halves equals checksumming the whole."""
        head, tail = b"IHDR", b"\x00\x00\x00\x10"
        running = update_crc(update_crc(CRC32_SEED, head), tail)
        assert running ^ CRC32_SEED == crc32(head + tail)
