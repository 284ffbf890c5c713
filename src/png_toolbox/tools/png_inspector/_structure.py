"""Extract IHDR, PLTE and the IDAT run from a decoded chunk sequence.

IHDR data layout (13 bytes, big-endian)::

    Offset  Size  Field
    0       4     Width
    4       4     Height
    8       1     Bit depth
    9       1     Colour type
    10      1     Compression method (0 = deflate)
    11      1     Filter method (0 = adaptive)
    12      1     Interlace method (0 = none, 1 = Adam7)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from png_toolbox.core.datatypes import (
    Chunk,
    ChunkType,
    ColorType,
    CompressedStream,
    HeaderMetadata,
    InterlaceMethod,
    Palette,
)
from png_toolbox.core.exceptions import DataTypeError, FormatError, RangeError
from png_toolbox.tools.png_inspector._numbers import MAX_INT_32BIT, bytes_to_32bit_uint

logger = logging.getLogger(__name__)

IHDR_LENGTH = 13

COMPRESSION_DEFLATE = 0
FILTER_ADAPTIVE = 0

LEGAL_BIT_DEPTHS: dict[ColorType, frozenset[int]] = {
    ColorType.GRAYSCALE: frozenset({1, 2, 4, 8, 16}),
    ColorType.RGB: frozenset({8, 16}),
    ColorType.INDEXED: frozenset({1, 2, 4, 8}),
    ColorType.GRAYSCALE_ALPHA: frozenset({8, 16}),
    ColorType.RGB_ALPHA: frozenset({8, 16}),
}

# Colour types that may carry a PLTE chunk.
_PALETTE_COLOR_TYPES = frozenset({ColorType.INDEXED, ColorType.RGB, ColorType.RGB_ALPHA})


# ── Header ────────────────────────────────────────────────────────────────


def validate_color_depth(color_type: int, bit_depth: int) -> ColorType:
    """Check a (colour type, bit depth) pair against the legality table.

    Args:
        color_type: Raw colour-type byte.
        bit_depth: Raw bit-depth byte.

    Returns:
        The colour type as a ``ColorType``.

    Raises:
        DataTypeError: If the colour type is unknown, the bit depth is
            malformed, or the pair is not allowed.
    """
    try:
        kind = ColorType(color_type)
    except ValueError as exc:
        msg = f"Unknown colour type: {color_type}"
        raise DataTypeError(msg) from exc
    if not 1 <= bit_depth <= 16 or (bit_depth not in (1, 2) and bit_depth % 4 != 0):
        msg = f"Invalid bit depth: {bit_depth}"
        raise DataTypeError(msg)

    if bit_depth not in LEGAL_BIT_DEPTHS[kind]:
        msg = f"Bit depth {bit_depth} is not allowed for colour type {kind.name} (allowed: {sorted(LEGAL_BIT_DEPTHS[kind])})"
        raise DataTypeError(msg)
    return kind


def extract_header(chunks: Sequence[Chunk]) -> HeaderMetadata:
    """Decode the IHDR chunk, which must be the first chunk.

    Args:
        chunks: The full chunk sequence.

    Returns:
        The validated ``HeaderMetadata``.

    Raises:
        FormatError: If IHDR is missing or misplaced, has the wrong size,
            zero dimensions, or an unsupported method byte.
        DataTypeError: For an illegal colour type / bit depth combination.
    """
    if not chunks or chunks[0].chunk_type is not ChunkType.IHDR:
        found = chunks[0].name if chunks else "nothing"
        msg = f"First chunk must be IHDR, found {found}"
        raise FormatError(msg, chunk_index=0)

    data = chunks[0].data
    if len(data) != IHDR_LENGTH:
        msg = f"IHDR must be {IHDR_LENGTH} bytes, got {len(data)}"
        raise FormatError(msg, chunk_index=0)

    width = bytes_to_32bit_uint(*data[0:4])
    height = bytes_to_32bit_uint(*data[4:8])
    if width == 0 or height == 0:
        msg = f"Image dimensions must be non-zero, got {width}x{height}"
        raise FormatError(msg, chunk_index=0)
    if width > MAX_INT_32BIT or height > MAX_INT_32BIT:
        msg = f"Image dimensions exceed {MAX_INT_32BIT}: {width}x{height}"
        raise FormatError(msg, chunk_index=0)

    bit_depth, color_type, compression, filter_method, interlace = data[8:13]
    kind = validate_color_depth(color_type, bit_depth)

    if compression != COMPRESSION_DEFLATE:
        msg = f"Unsupported compression method: {compression}"
        raise FormatError(msg, chunk_index=0)
    if filter_method != FILTER_ADAPTIVE:
        msg = f"Unsupported filter method: {filter_method}"
        raise FormatError(msg, chunk_index=0)
    try:
        interlace_method = InterlaceMethod(interlace)
    except ValueError as exc:
        msg = f"Unsupported interlace method: {interlace}"
        raise FormatError(msg, chunk_index=0) from exc

    header = HeaderMetadata(
        width=width,
        height=height,
        bit_depth=bit_depth,
        color_type=kind,
        compression_method=compression,
        filter_method=filter_method,
        interlace_method=interlace_method,
    )
    logger.debug("IHDR: %dx%d, %d-bit %s", width, height, bit_depth, kind.name)
    return header


# ── Palette ───────────────────────────────────────────────────────────────


def is_valid_palette_length(length: int) -> bool:
    """Return True if *length* is a non-zero whole number of RGB triplets."""
    return length > 0 and length % 3 == 0


def extract_palette(chunks: Sequence[Chunk], header: HeaderMetadata) -> Palette | None:
    """Find and bounds-check the PLTE chunk.

    A missing palette is not an error here, even for indexed images;
    that policy belongs to the caller.

    Args:
        chunks: The full chunk sequence (the header at index 0 is skipped).
        header: The decoded header that bounds the palette.

    Returns:
        The ``Palette``, or ``None`` if there is no PLTE chunk.

    Raises:
        FormatError: If PLTE appears for a grayscale colour type, follows
            the first IDAT chunk, or is not a whole number of RGB entries.
        RangeError: If PLTE holds more entries than the bit depth can index.
    """
    chunk = next((c for c in chunks[1:] if c.chunk_type is ChunkType.PLTE), None)
    if chunk is None:
        return None

    if header.color_type not in _PALETTE_COLOR_TYPES:
        msg = f"PLTE chunk is not allowed for colour type {header.color_type.name}"
        raise FormatError(msg, chunk_index=chunk.index)

    first_idat = next((c for c in chunks if c.chunk_type is ChunkType.IDAT), None)
    if first_idat is not None and chunk.index > first_idat.index:
        msg = f"PLTE chunk at index {chunk.index} must precede the first IDAT chunk (index {first_idat.index})"
        raise FormatError(msg, offset=chunk.offset, chunk_index=chunk.index)

    limit = header.max_palette_entries * 3
    if chunk.length > limit:
        msg = (
            f"PLTE holds {chunk.length // 3} entries, but {header.bit_depth}-bit "
            f"pixels can index at most {header.max_palette_entries}"
        )
        raise RangeError(msg)

    if not is_valid_palette_length(chunk.length):
        msg = f"PLTE length {chunk.length} is not a non-zero multiple of 3"
        raise FormatError(msg, chunk_index=chunk.index)

    return Palette(data=chunk.data, header=header)


# ── IDAT run ──────────────────────────────────────────────────────────────


def collect_compressed_stream(chunks: Sequence[Chunk]) -> CompressedStream:
    """Collect the IDAT chunks in stream order.

    Ancillary chunks may follow the IDAT run, but once an IDAT chunk has
    been seen, any other chunk followed by a further IDAT breaks the run.
    The error names the chunk immediately before the resuming IDAT.

    Args:
        chunks: The full chunk sequence (the header at index 0 is skipped).

    Returns:
        A ``CompressedStream`` (possibly empty).

    Raises:
        FormatError: If the IDAT run is interrupted; ``chunk_index`` names
            the chunk that directly precedes the resuming IDAT.
    """
    collected: list[Chunk] = []
    previous: Chunk | None = None

    for chunk in chunks[1:]:
        kind = chunk.chunk_type
        if kind is ChunkType.IEND:
            break
        if kind is ChunkType.IDAT:
            if collected and previous is not None and previous.chunk_type is not ChunkType.IDAT:
                msg = f"IDAT run interrupted by {previous.name} chunk at index {previous.index}"
                raise FormatError(msg, offset=previous.offset, chunk_index=previous.index)
            collected.append(chunk)
        previous = chunk

    return CompressedStream(chunks=tuple(collected))
