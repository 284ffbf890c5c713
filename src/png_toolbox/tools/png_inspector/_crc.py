"""Table-driven CRC-32 as used by PNG chunk checksums.

Uses the reflected polynomial ``0xEDB88320``.  The 256-entry lookup table
is computed once when the module is imported and never mutated, so any
number of decode passes may share it.

See http://www.libpng.org/pub/png/spec/1.2/PNG-CRCAppendix.html
"""

from __future__ import annotations

from collections.abc import Iterable

CRC32_POLYNOMIAL = 0xEDB88320
CRC32_SEED = 0xFFFFFFFF


def _make_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = CRC32_POLYNOMIAL ^ (c >> 1)
            else:
                c >>= 1
        table.append(c)
    return tuple(table)


CRC32_TABLE: tuple[int, ...] = _make_table()


def update_crc(crc: int, data: Iterable[int]) -> int:
    """Fold *data* into a running (pre-inverted) CRC accumulator.

    Args:
        crc: Current accumulator value; start from ``CRC32_SEED``.
        data: Bytes, bytearray, memoryview or any iterable of byte values.

    Returns:
        The updated accumulator.  XOR with ``CRC32_SEED`` to finalise.
    """
    c = crc
    for byte in data:
        c = CRC32_TABLE[(c ^ byte) & 0xFF] ^ (c >> 8)
    return c


def crc32(data: Iterable[int]) -> int:
    """Return the CRC-32 of *data* as an unsigned 32-bit integer."""
    return update_crc(CRC32_SEED, data) ^ CRC32_SEED
