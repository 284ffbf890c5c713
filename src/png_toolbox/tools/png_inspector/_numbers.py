"""Integer classification and byte-sequence conversion.

Classification answers "does this value fit in N bits?" for the 8, 16,
24 and 32 bit signed and unsigned ranges.  Signed checks use the
sign-extension round trip: the value is shifted left so bit ``width - 1``
lands on bit 31 of a 32-bit register, then shifted back with an
arithmetic shift.  Only values of that width survive unchanged::

    -128 << 24  ->  0x80000000  ->  >> 24  ->  -128   (int8)
    -129 << 24  ->  0x7F000000  ->  >> 24  ->   127   (not int8)

Unsigned checks mask with ``2**width - 1`` and compare.

Conversion packs integers into lists of byte values (and back) in
big-endian order unless ``little_endian`` is set.

Floats are accepted only when finite and integral (``255.0``).  NumPy
64-bit integer scalars are rejected by ``get_number_type`` and
``num_to_bytes`` with ``UnsupportedError``.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import Any

import numpy as np

from png_toolbox.core.exceptions import DataTypeError, RangeError, UnsupportedError

# ---------------------------------------------------------------------------
# Range constants
# ---------------------------------------------------------------------------

MAX_UINT_8BIT = 0xFF
MAX_UINT_16BIT = 0xFFFF
MAX_UINT_24BIT = 0xFFFFFF
MAX_UINT_32BIT = 0xFFFFFFFF

MIN_INT_8BIT = -0x80
MIN_INT_16BIT = -0x8000
MIN_INT_24BIT = -0x800000
MIN_INT_32BIT = -0x80000000

MAX_INT_8BIT = 0x7F
MAX_INT_16BIT = 0x7FFF
MAX_INT_24BIT = 0x7FFFFF
MAX_INT_32BIT = 0x7FFFFFFF

_REGISTER_BITS = 32
_REGISTER_MASK = MAX_UINT_32BIT
_SUPPORTED_WIDTHS = (8, 16, 24, 32)

_INT64_TYPES = (np.int64, np.uint64)
_NUMERIC_TYPES = (int, float, np.integer, np.floating)


class NumberType(StrEnum):
    """Integer categories reported by ``get_number_type``."""

    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT24 = "int24"
    UINT24 = "uint24"
    INT32 = "int32"
    UINT32 = "uint32"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _as_int(num: Any) -> int | None:
    """Return *num* as a Python int, or ``None`` if it is not an integral number.

    Booleans are not numbers here, even though ``bool`` subclasses ``int``.
    """
    if isinstance(num, (bool, np.bool_)):
        return None
    if isinstance(num, (int, np.integer)):
        return int(num)
    if isinstance(num, (float, np.floating)):
        if not math.isfinite(num) or not float(num).is_integer():
            return None
        return int(num)
    return None


def _to_register(value: int) -> int:
    """Truncate *value* to 32 bits and reinterpret it as a signed register."""
    value &= _REGISTER_MASK
    if value & 0x80000000:
        return value - (1 << _REGISTER_BITS)
    return value


def _fits_signed(num: Any, width: int) -> bool:
    value = _as_int(num)
    if value is None:
        return False
    shift = _REGISTER_BITS - width
    return _to_register(value << shift) >> shift == value


def _fits_unsigned(num: Any, width: int) -> bool:
    value = _as_int(num)
    if value is None:
        return False
    return value & ((1 << width) - 1) == value


def is_signed_byte(num: Any) -> bool:
    """Return True if *num* fits a signed 8-bit integer."""
    return _fits_signed(num, 8)


def is_signed_short(num: Any) -> bool:
    """Return True if *num* fits a signed 16-bit integer."""
    return _fits_signed(num, 16)


def is_signed_24bit(num: Any) -> bool:
    """Return True if *num* fits a signed 24-bit integer."""
    return _fits_signed(num, 24)


def is_signed_int(num: Any) -> bool:
    """Return True if *num* fits a signed 32-bit integer."""
    return _fits_signed(num, 32)


def is_unsigned_byte(num: Any) -> bool:
    """Return True if *num* fits an unsigned 8-bit integer (0-255)."""
    return _fits_unsigned(num, 8)


def is_unsigned_short(num: Any) -> bool:
    """Return True if *num* fits an unsigned 16-bit integer."""
    return _fits_unsigned(num, 16)


def is_unsigned_24bit(num: Any) -> bool:
    """Return True if *num* fits an unsigned 24-bit integer."""
    return _fits_unsigned(num, 24)


def is_unsigned_int(num: Any) -> bool:
    """Return True if *num* fits an unsigned 32-bit integer."""
    return _fits_unsigned(num, 32)


_CLASSIFIERS: tuple[tuple[Callable[[Any], bool], NumberType], ...] = (
    (is_signed_byte, NumberType.INT8),
    (is_unsigned_byte, NumberType.UINT8),
    (is_signed_short, NumberType.INT16),
    (is_unsigned_short, NumberType.UINT16),
    (is_signed_24bit, NumberType.INT24),
    (is_unsigned_24bit, NumberType.UINT24),
    (is_signed_int, NumberType.INT32),
    (is_unsigned_int, NumberType.UINT32),
)


def get_number_type(num: Any) -> NumberType:
    """Return the narrowest integer category *num* belongs to.

    Categories are tried in order int8, uint8, int16, uint16, int24,
    uint24, int32, uint32.

    Args:
        num: The value to classify.

    Returns:
        The first matching ``NumberType``.

    Raises:
        UnsupportedError: For 64-bit integer scalars or values outside
            every 32-bit range.
        DataTypeError: If *num* is not numeric, or is NaN, infinite or
            fractional.
    """
    if isinstance(num, _INT64_TYPES):
        msg = f"64-bit integers are not supported: {num!r}"
        raise UnsupportedError(msg)
    if not isinstance(num, _NUMERIC_TYPES) or _as_int(num) is None:
        msg = f"Expected a finite integer, got {num!r}"
        raise DataTypeError(msg)

    for classifier, number_type in _CLASSIFIERS:
        if classifier(num):
            return number_type

    msg = f"{num!r} does not fit any 8/16/24/32-bit integer type"
    raise UnsupportedError(msg)


# ---------------------------------------------------------------------------
# Bytes -> integer
# ---------------------------------------------------------------------------


def _require_bytes(*values: Any) -> list[int]:
    """Validate that every value is an unsigned byte and return them as ints.

    Raises:
        RangeError: If any value is outside 0-255, NaN or infinite.
    """
    for value in values:
        if not is_unsigned_byte(value):
            msg = f"{value!r} is not an unsigned byte (0-255)"
            raise RangeError(msg)
    return [int(value) for value in values]


def bytes_to_16bit_uint(high_byte: Any, low_byte: Any, little_endian: bool = False) -> int:
    """Combine two bytes into an unsigned 16-bit integer.

    With ``little_endian`` the *last* argument is the most significant byte.

    Raises:
        RangeError: If either argument is not an unsigned byte.
    """
    high, low = _require_bytes(high_byte, low_byte)
    if little_endian:
        return (low << 8) | high
    return (high << 8) | low


def bytes_to_24bit_uint(highest_byte: Any, mid_byte: Any, lowest_byte: Any, little_endian: bool = False) -> int:
    """Combine three bytes into an unsigned 24-bit integer.

    Raises:
        RangeError: If any argument is not an unsigned byte.
    """
    highest, mid, lowest = _require_bytes(highest_byte, mid_byte, lowest_byte)
    if little_endian:
        return (lowest << 16) | (mid << 8) | highest
    return (highest << 16) | (mid << 8) | lowest


def bytes_to_32bit_uint(
    highest_byte: Any,
    first_mid_byte: Any,
    second_mid_byte: Any,
    lowest_byte: Any,
    little_endian: bool = False,
) -> int:
    """Combine four bytes into an unsigned 32-bit integer.

    The result is masked to 32 bits so it is never read back as negative.

    Raises:
        RangeError: If any argument is not an unsigned byte.
    """
    highest, first_mid, second_mid, lowest = _require_bytes(
        highest_byte, first_mid_byte, second_mid_byte, lowest_byte
    )
    if little_endian:
        value = (lowest << 24) | (second_mid << 16) | (first_mid << 8) | highest
    else:
        value = (highest << 24) | (first_mid << 16) | (second_mid << 8) | lowest
    return value & MAX_UINT_32BIT


def bytes_to_int(
    data: Sequence[Any],
    width: int = 32,
    *,
    little_endian: bool = False,
    signed: bool = False,
) -> int:
    """Read an integer of *width* bits from a byte sequence.

    Signed values are recovered from the unsigned reading: when the sign
    bit is set, ``2**width`` is subtracted.

    Args:
        data: Exactly ``width // 8`` byte values.
        width: Bit width, one of 8, 16, 24, 32.
        little_endian: Treat the last byte as most significant.
        signed: Interpret the value as two's complement.

    Returns:
        The decoded integer.

    Raises:
        UnsupportedError: If *width* is not a supported width.
        RangeError: If *data* has the wrong length or holds a non-byte value.
    """
    if width not in _SUPPORTED_WIDTHS:
        msg = f"Unsupported bit width: {width}"
        raise UnsupportedError(msg)
    if len(data) != width // 8:
        msg = f"Expected {width // 8} bytes for a {width}-bit integer, got {len(data)}"
        raise RangeError(msg)

    if width == 8:
        value = _require_bytes(data[0])[0]
    elif width == 16:
        value = bytes_to_16bit_uint(*data, little_endian=little_endian)
    elif width == 24:
        value = bytes_to_24bit_uint(*data, little_endian=little_endian)
    else:
        value = bytes_to_32bit_uint(*data, little_endian=little_endian)

    if signed and value & (1 << (width - 1)):
        value -= 1 << width
    return value


# ---------------------------------------------------------------------------
# Integer -> bytes
# ---------------------------------------------------------------------------


def _prepare(num: Any, fits: Callable[[Any], bool], skip_check: bool, label: str) -> int:
    if not skip_check and not fits(num):
        msg = f"{num!r} is not a valid {label}"
        raise RangeError(msg)
    value = _as_int(num)
    if value is None:
        msg = f"{num!r} is not an integer"
        raise RangeError(msg)
    return value


def _split(value: int, width: int, little_endian: bool) -> list[int]:
    out = [(value >> shift) & MAX_UINT_8BIT for shift in range(width - 8, -1, -8)]
    if little_endian:
        out.reverse()
    return out


def uint8_to_bytes(num: Any, *, skip_check: bool = False) -> list[int]:
    """Return ``[num]`` after checking it is an unsigned byte."""
    return [_prepare(num, is_unsigned_byte, skip_check, "uint8") & MAX_UINT_8BIT]


def int8_to_bytes(num: Any, *, skip_check: bool = False) -> list[int]:
    """Return the two's-complement byte of a signed 8-bit integer."""
    return [_prepare(num, is_signed_byte, skip_check, "int8") & MAX_UINT_8BIT]


def uint16_to_bytes(num: Any, *, skip_check: bool = False, little_endian: bool = False) -> list[int]:
    """Split an unsigned 16-bit integer into 2 bytes."""
    return _split(_prepare(num, is_unsigned_short, skip_check, "uint16"), 16, little_endian)


def int16_to_bytes(num: Any, *, skip_check: bool = False, little_endian: bool = False) -> list[int]:
    """Split a signed 16-bit integer into 2 two's-complement bytes."""
    return _split(_prepare(num, is_signed_short, skip_check, "int16"), 16, little_endian)


def uint24_to_bytes(num: Any, *, skip_check: bool = False, little_endian: bool = False) -> list[int]:
    """Split an unsigned 24-bit integer into 3 bytes."""
    return _split(_prepare(num, is_unsigned_24bit, skip_check, "uint24"), 24, little_endian)


def int24_to_bytes(num: Any, *, skip_check: bool = False, little_endian: bool = False) -> list[int]:
    """Split a signed 24-bit integer into 3 two's-complement bytes."""
    return _split(_prepare(num, is_signed_24bit, skip_check, "int24"), 24, little_endian)


def uint32_to_bytes(num: Any, *, skip_check: bool = False, little_endian: bool = False) -> list[int]:
    """Split an unsigned 32-bit integer into 4 bytes."""
    return _split(_prepare(num, is_unsigned_int, skip_check, "uint32"), 32, little_endian)


def int32_to_bytes(num: Any, *, skip_check: bool = False, little_endian: bool = False) -> list[int]:
    """Split a signed 32-bit integer into 4 two's-complement bytes."""
    return _split(_prepare(num, is_signed_int, skip_check, "int32"), 32, little_endian)


# (width, signed) -> writer
_WRITERS: dict[tuple[int, bool], Callable[..., list[int]]] = {
    (16, False): uint16_to_bytes,
    (16, True): int16_to_bytes,
    (24, False): uint24_to_bytes,
    (24, True): int24_to_bytes,
    (32, False): uint32_to_bytes,
    (32, True): int32_to_bytes,
}


def int_to_bytes(
    num: Any,
    width: int = 32,
    *,
    little_endian: bool = False,
    signed: bool = False,
    skip_check: bool = False,
) -> list[int]:
    """Write *num* as a *width*-bit integer.

    Args:
        num: The integer to encode.
        width: Bit width, one of 8, 16, 24, 32.
        little_endian: Emit the least significant byte first.
        signed: Validate against the signed range instead of the unsigned one.
        skip_check: Skip range validation for values already known to be valid.

    Returns:
        A list of ``width // 8`` byte values.

    Raises:
        UnsupportedError: If *width* is not a supported width.
        RangeError: If *num* does not fit the requested range.
    """
    if width not in _SUPPORTED_WIDTHS:
        msg = f"Unsupported bit width: {width}"
        raise UnsupportedError(msg)
    if width == 8:
        writer = int8_to_bytes if signed else uint8_to_bytes
        return writer(num, skip_check=skip_check)
    return _WRITERS[(width, signed)](num, skip_check=skip_check, little_endian=little_endian)


# NumberType -> (width, signed)
_TYPE_LAYOUT: dict[NumberType, tuple[int, bool]] = {
    NumberType.INT8: (8, True),
    NumberType.UINT8: (8, False),
    NumberType.INT16: (16, True),
    NumberType.UINT16: (16, False),
    NumberType.INT24: (24, True),
    NumberType.UINT24: (24, False),
    NumberType.INT32: (32, True),
    NumberType.UINT32: (32, False),
}


def num_to_bytes(num: Any, little_endian: bool = False) -> list[int]:
    """Encode *num* using the narrowest integer type that holds it.

    Raises:
        UnsupportedError: For 64-bit integer scalars.
        RangeError: If *num* exceeds the unsigned 32-bit maximum.
        DataTypeError: If *num* is not a finite integer.
    """
    if isinstance(num, _INT64_TYPES):
        msg = f"64-bit integers are not supported: {num!r}"
        raise UnsupportedError(msg)
    if isinstance(num, _NUMERIC_TYPES) and num > MAX_UINT_32BIT:
        msg = f"{num!r} exceeds the unsigned 32-bit maximum"
        raise RangeError(msg)

    width, signed = _TYPE_LAYOUT[get_number_type(num)]
    return int_to_bytes(num, width, little_endian=little_endian, signed=signed, skip_check=True)
