"""Signature check and chunk-stream walking for PNG buffers.

Chunk layout (all big-endian)::

    Offset  Size    Field
    0       4       Length of the data field (N)
    4       4       Type code, e.g. ``IHDR``
    8       N       Data
    8+N     4       CRC-32 over type code + data (length excluded)
"""

from __future__ import annotations

import logging

from png_toolbox.core.datatypes import Chunk, ChunkType
from png_toolbox.core.exceptions import FormatError
from png_toolbox.tools.png_inspector._crc import crc32
from png_toolbox.tools.png_inspector._numbers import bytes_to_32bit_uint

logger = logging.getLogger(__name__)

# 137 80 78 71 13 10 26 10 -> "\x89PNG\r\n\x1a\n"
PNG_SIGNATURE = bytes((0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A))

_LENGTH_SIZE = 4
_TYPE_SIZE = 4
_CRC_SIZE = 4


def validate_signature(data: bytes) -> None:
    """Check that *data* starts with the 8-byte PNG signature.

    Args:
        data: The complete file contents.

    Raises:
        FormatError: At the first offset that is missing or does not match.
    """
    for offset, expected in enumerate(PNG_SIGNATURE):
        if offset >= len(data):
            msg = f"Not a PNG file: data ends at offset {offset} inside the signature"
            raise FormatError(msg, offset=offset)
        if data[offset] != expected:
            msg = f"Not a PNG file: signature mismatch at offset {offset}: {data[offset]:#04x} != {expected:#04x}"
            raise FormatError(msg, offset=offset)


def _read_uint32(data: bytes, offset: int) -> int:
    return bytes_to_32bit_uint(*data[offset : offset + 4])


def decode_chunks(data: bytes, start: int = len(PNG_SIGNATURE)) -> tuple[Chunk, ...]:
    """Walk every chunk in *data* starting after the signature.

    Checksum mismatches are recorded on each ``Chunk`` (``is_corrupted``)
    and logged, but never raised.

    Args:
        data: The complete file contents, signature already validated.
        start: Offset of the first chunk.

    Returns:
        The chunks in file order.

    Raises:
        FormatError: If a chunk runs past the end of the buffer, or the
            last chunk is not ``IEND``.
    """
    view = memoryview(data)
    total = len(data)
    chunks: list[Chunk] = []
    offset = start

    while offset < total:
        index = len(chunks)
        if offset + _LENGTH_SIZE + _TYPE_SIZE > total:
            msg = f"Truncated chunk header at offset {offset} ({total - offset} bytes left)"
            raise FormatError(msg, offset=offset, chunk_index=index)

        length = _read_uint32(data, offset)
        type_start = offset + _LENGTH_SIZE
        data_start = type_start + _TYPE_SIZE
        crc_start = data_start + length
        end = crc_start + _CRC_SIZE
        if end > total:
            msg = f"Truncated chunk at offset {offset}: declares {length} data bytes, buffer ends at {total}"
            raise FormatError(msg, offset=offset, chunk_index=index)

        chunk = Chunk(
            index=index,
            offset=offset,
            length=length,
            type_code=bytes(view[type_start:data_start]),
            data=bytes(view[data_start:crc_start]),
            stored_crc=_read_uint32(data, crc_start),
            computed_crc=crc32(view[type_start:crc_start]),
        )
        logger.debug("Chunk %d: %s, %d bytes at offset %d", index, chunk.name, length, offset)
        if chunk.is_corrupted:
            logger.warning(
                "Chunk %d (%s) CRC mismatch: stored %#010x, computed %#010x",
                index,
                chunk.name,
                chunk.stored_crc,
                chunk.computed_crc,
            )

        chunks.append(chunk)
        offset = end

    if not chunks or chunks[-1].chunk_type is not ChunkType.IEND:
        msg = "Missing terminal IEND chunk"
        raise FormatError(msg, offset=offset, chunk_index=len(chunks))

    return tuple(chunks)
