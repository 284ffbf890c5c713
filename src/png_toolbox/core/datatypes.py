"""Shared value objects used across tools and pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path

import numpy as np

# Bit 5 of each type-code byte is the ASCII lowercase bit.
_PROPERTY_BIT = 0x20

_MAX_PALETTE_ENTRIES = 256


@dataclass(frozen=True)
class PathList:
    """An immutable list of filesystem paths produced or consumed by tools."""

    paths: tuple[Path, ...]

    @property
    def count(self) -> int:
        """Return the number of paths in the list."""
        return len(self.paths)


# ── Chunk classification ──────────────────────────────────────────────────


class ChunkType(Enum):
    """Recognised chunk type codes, with ``UNKNOWN`` for everything else."""

    IHDR = b"IHDR"
    PLTE = b"PLTE"
    IDAT = b"IDAT"
    IEND = b"IEND"
    TRNS = b"tRNS"
    GAMA = b"gAMA"
    CHRM = b"cHRM"
    SRGB = b"sRGB"
    ICCP = b"iCCP"
    TEXT = b"tEXt"
    ZTXT = b"zTXt"
    ITXT = b"iTXt"
    BKGD = b"bKGD"
    PHYS = b"pHYs"
    SBIT = b"sBIT"
    SPLT = b"sPLT"
    HIST = b"hIST"
    TIME = b"tIME"
    UNKNOWN = b""

    @classmethod
    def from_code(cls, type_code: bytes) -> ChunkType:
        """Map a 4-byte type code to its ``ChunkType`` (``UNKNOWN`` if unrecognised)."""
        if len(type_code) != 4:
            return cls.UNKNOWN
        try:
            return cls(bytes(type_code))
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Chunk:
    """One length-prefixed record from the chunk stream.

    Attributes:
        index: Position of the chunk in the stream (0 = first after the signature).
        offset: Byte offset of the chunk's length field within the file.
        length: Number of data bytes.
        type_code: The raw 4-byte type code.
        data: The chunk payload.
        stored_crc: CRC-32 read from the file.
        computed_crc: CRC-32 computed over ``type_code + data``.
    """

    index: int
    offset: int
    length: int
    type_code: bytes
    data: bytes
    stored_crc: int
    computed_crc: int

    @property
    def name(self) -> str:
        """Return the type code as text (e.g. ``"IHDR"``)."""
        return self.type_code.decode("latin-1")

    @property
    def chunk_type(self) -> ChunkType:
        """Return the recognised type, or ``ChunkType.UNKNOWN``."""
        return ChunkType.from_code(self.type_code)

    @property
    def is_corrupted(self) -> bool:
        """Return True if the stored and computed checksums differ."""
        return self.stored_crc != self.computed_crc

    @property
    def is_critical(self) -> bool:
        """Critical chunks have an uppercase first letter."""
        return not self.type_code[0] & _PROPERTY_BIT

    @property
    def is_ancillary(self) -> bool:
        """Ancillary chunks have a lowercase first letter."""
        return not self.is_critical

    @property
    def is_private(self) -> bool:
        """Private chunks have a lowercase second letter."""
        return bool(self.type_code[1] & _PROPERTY_BIT)

    @property
    def is_reserved_bit_set(self) -> bool:
        """The third letter must be uppercase in conforming files."""
        return bool(self.type_code[2] & _PROPERTY_BIT)

    @property
    def is_safe_to_copy(self) -> bool:
        """Safe-to-copy chunks have a lowercase fourth letter."""
        return bool(self.type_code[3] & _PROPERTY_BIT)


# ── Header ────────────────────────────────────────────────────────────────


class ColorType(IntEnum):
    """IHDR colour types."""

    GRAYSCALE = 0
    RGB = 2
    INDEXED = 3
    GRAYSCALE_ALPHA = 4
    RGB_ALPHA = 6


class InterlaceMethod(IntEnum):
    """IHDR interlace methods."""

    NONE = 0
    ADAM7 = 1


# Samples per pixel for each colour type.
_CHANNELS: dict[ColorType, int] = {
    ColorType.GRAYSCALE: 1,
    ColorType.RGB: 3,
    ColorType.INDEXED: 1,
    ColorType.GRAYSCALE_ALPHA: 2,
    ColorType.RGB_ALPHA: 4,
}


@dataclass(frozen=True)
class HeaderMetadata:
    """Decoded contents of the IHDR chunk."""

    width: int
    height: int
    bit_depth: int
    color_type: ColorType
    compression_method: int
    filter_method: int
    interlace_method: InterlaceMethod

    @property
    def channels(self) -> int:
        """Return the number of samples per pixel."""
        return _CHANNELS[self.color_type]

    @property
    def bits_per_pixel(self) -> int:
        """Return the number of bits used by one pixel."""
        return self.channels * self.bit_depth

    @property
    def scanline_length(self) -> int:
        """Return the byte length of one unfiltered scanline (no filter-type byte)."""
        return (self.width * self.bits_per_pixel + 7) // 8

    @property
    def max_palette_entries(self) -> int:
        """Return how many PLTE entries this header allows (at most 256)."""
        return min(1 << self.bit_depth, _MAX_PALETTE_ENTRIES)


@dataclass(frozen=True)
class Palette:
    """Raw PLTE data, bounded by the header it belongs to."""

    data: bytes
    header: HeaderMetadata

    @property
    def entry_count(self) -> int:
        """Return the number of RGB entries."""
        return len(self.data) // 3

    def entries(self) -> np.ndarray:
        """Return the palette as an ``(entry_count, 3)`` ``uint8`` array."""
        raw = np.frombuffer(self.data[: self.entry_count * 3], dtype=np.uint8)
        return raw.reshape(-1, 3)

    def __len__(self) -> int:
        return len(self.data)


# ── Compressed stream & full structure ────────────────────────────────────


@dataclass(frozen=True)
class CompressedStream:
    """The contiguous run of IDAT chunks, in stream order."""

    chunks: tuple[Chunk, ...]

    @property
    def payloads(self) -> tuple[bytes, ...]:
        """Return each IDAT payload in order."""
        return tuple(chunk.data for chunk in self.chunks)

    @property
    def data(self) -> bytes:
        """Return the concatenated compressed byte stream."""
        return b"".join(self.payloads)

    def __len__(self) -> int:
        return sum(chunk.length for chunk in self.chunks)


@dataclass(frozen=True)
class PngStructure:
    """Everything a single decode pass extracts from a PNG buffer."""

    header: HeaderMetadata
    palette: Palette | None
    chunks: tuple[Chunk, ...]
    compressed_stream: CompressedStream

    @property
    def corrupted_chunks(self) -> tuple[Chunk, ...]:
        """Return the chunks whose checksum did not match."""
        return tuple(chunk for chunk in self.chunks if chunk.is_corrupted)

    @property
    def ancillary_chunks(self) -> tuple[Chunk, ...]:
        """Return the non-critical chunks."""
        return tuple(chunk for chunk in self.chunks if chunk.is_ancillary)


@dataclass(frozen=True)
class InspectionResult:
    """Result of inspecting a PNG file."""

    path: Path
    structure: PngStructure


@dataclass(frozen=True)
class StreamExportResult:
    """Result of writing a compressed IDAT stream to disk."""

    source: Path
    output_path: Path
    size: int
    chunk_count: int
