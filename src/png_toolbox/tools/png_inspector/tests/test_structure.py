"""Tests for IHDR, PLTE and IDAT-run extraction."""

from __future__ import annotations

import struct
import zlib

import pytest

from png_toolbox.core.datatypes import Chunk, ColorType, InterlaceMethod
from png_toolbox.core.exceptions import DataTypeError, FormatError, RangeError
from png_toolbox.tools.png_inspector._chunks import PNG_SIGNATURE, decode_chunks
from png_toolbox.tools.png_inspector._structure import (
    LEGAL_BIT_DEPTHS,
    collect_compressed_stream,
    extract_header,
    extract_palette,
    is_valid_palette_length,
    validate_color_depth,
)

# ── Helpers ───────────────────────────────────────────────────────────────


def _chunk(type_code: bytes, data: bytes = b"") -> bytes:
    """Serialise one chunk with a correct CRC."""
    return struct.pack(">I", len(data)) + type_code + data + struct.pack(">I", zlib.crc32(type_code + data))


def _ihdr(
    width: int = 4,
    height: int = 2,
    bit_depth: int = 8,
    color_type: int = 2,
    compression: int = 0,
    filter_method: int = 0,
    interlace: int = 0,
) -> bytes:
    """Serialise an IHDR chunk from its seven fields."""
    fields = struct.pack(">IIBBBBB", width, height, bit_depth, color_type, compression, filter_method, interlace)
    return _chunk(b"IHDR", fields)


def _decode(*chunks: bytes) -> tuple[Chunk, ...]:
    """Decode serialised chunks, appending the terminal IEND."""
    return decode_chunks(PNG_SIGNATURE + b"".join(chunks) + _chunk(b"IEND"))


# ── Tests: colour type / bit depth ────────────────────────────────────────


class TestValidateColorDepth:
    """Tests for the colour-type / bit-depth legality table."""

    @pytest.mark.parametrize(
        ("color_type", "bit_depth"),
        [(kind, depth) for kind, depths in LEGAL_BIT_DEPTHS.items() for depth in sorted(depths)],
    )
    def test_legal_pairs(self, color_type: ColorType, bit_depth: int) -> None:
        """Every listed pair is accepted and returns the colour type."""
        assert validate_color_depth(int(color_type), bit_depth) is color_type

    @pytest.mark.parametrize(
        ("color_type", "bit_depth"),
        [(2, 4), (3, 16), (4, 1), (6, 2), (0, 12)],
    )
    def test_illegal_pairs(self, color_type: int, bit_depth: int) -> None:
        """Well-formed but disallowed pairs are rejected."""
        with pytest.raises(DataTypeError, match="not allowed"):
            validate_color_depth(color_type, bit_depth)

    @pytest.mark.parametrize("bit_depth", [0, 3, 7, 17, 32])
    def test_malformed_bit_depth(self, bit_depth: int) -> None:
        """Bit depths that are not 1, 2 or a multiple of 4 up to 16 are rejected."""
        with pytest.raises(DataTypeError, match="Invalid bit depth"):
            validate_color_depth(0, bit_depth)

    @pytest.mark.parametrize("color_type", [1, 5, 7, 255])
    def test_unknown_colour_type(self, color_type: int) -> None:
        """Colour types outside the table are rejected."""
        with pytest.raises(DataTypeError, match="Unknown colour type"):
            validate_color_depth(color_type, 8)

    def test_error_is_a_type_error(self) -> None:
        """``DataTypeError`` can be caught as ``TypeError``."""
        with pytest.raises(TypeError):
            validate_color_depth(2, 1)


# ── Tests: header ─────────────────────────────────────────────────────────


class TestExtractHeader:
    """Tests for ``extract_header``."""

    def test_decodes_fields(self) -> None:
        """All seven IHDR fields are decoded big-endian."""
        header = extract_header(_decode(_ihdr(width=640, height=480, bit_depth=16, color_type=6, interlace=1)))

        assert header.width == 640
        assert header.height == 480
        assert header.bit_depth == 16
        assert header.color_type is ColorType.RGB_ALPHA
        assert header.compression_method == 0
        assert header.filter_method == 0
        assert header.interlace_method is InterlaceMethod.ADAM7

    def test_derived_geometry(self) -> None:
        """Channels, bits per pixel and scanline length follow from the header."""
        header = extract_header(_decode(_ihdr(width=5, bit_depth=4, color_type=0)))

        assert header.channels == 1
        assert header.bits_per_pixel == 4
        assert header.scanline_length == 3

    def test_header_must_come_first(self) -> None:
        """A stream that does not start with IHDR is rejected."""
        chunks = _decode(_chunk(b"tEXt", b"k\x00v"), _ihdr())
        with pytest.raises(FormatError, match="First chunk must be IHDR") as excinfo:
            extract_header(chunks)
        assert excinfo.value.chunk_index == 0

    def test_wrong_length(self) -> None:
        """IHDR data must be exactly 13 bytes."""
        chunks = _decode(_chunk(b"IHDR", b"\x00" * 12))
        with pytest.raises(FormatError, match="13 bytes"):
            extract_header(chunks)

    @pytest.mark.parametrize(("width", "height"), [(0, 1), (1, 0), (0, 0)])
    def test_zero_dimensions(self, width: int, height: int) -> None:
        """Zero width or height is rejected."""
        with pytest.raises(FormatError, match="non-zero"):
            extract_header(_decode(_ihdr(width=width, height=height)))

    def test_oversized_dimensions(self) -> None:
        """Dimensions above 2**31 - 1 are rejected."""
        with pytest.raises(FormatError, match="exceed"):
            extract_header(_decode(_ihdr(width=0x80000000)))

    def test_bad_compression_method(self) -> None:
        """Only deflate (0) is accepted."""
        with pytest.raises(FormatError, match="compression method"):
            extract_header(_decode(_ihdr(compression=1)))

    def test_bad_filter_method(self) -> None:
        """Only adaptive filtering (0) is accepted."""
        with pytest.raises(FormatError, match="filter method"):
            extract_header(_decode(_ihdr(filter_method=2)))

    def test_bad_interlace_method(self) -> None:
        """Interlace must be 0 or 1."""
        with pytest.raises(FormatError, match="interlace method"):
            extract_header(_decode(_ihdr(interlace=2)))

    def test_illegal_colour_depth(self) -> None:
        """Illegal colour/depth pairs surface as ``DataTypeError``."""
        with pytest.raises(DataTypeError):
            extract_header(_decode(_ihdr(bit_depth=4, color_type=2)))


# ── Tests: palette ────────────────────────────────────────────────────────


class TestExtractPalette:
    """Tests for ``extract_palette``."""

    def test_valid_palette_length(self) -> None:
        """Only non-zero multiples of three are valid."""
        assert is_valid_palette_length(3)
        assert is_valid_palette_length(768)
        assert not is_valid_palette_length(0)
        assert not is_valid_palette_length(4)

    def test_no_palette_returns_none(self) -> None:
        """An image without PLTE has no palette."""
        chunks = _decode(_ihdr(), _chunk(b"IDAT", b"x"))
        assert extract_palette(chunks, extract_header(chunks)) is None

    def test_indexed_palette(self) -> None:
        """PLTE entries are exposed as an (n, 3) array."""
        plte = bytes([255, 0, 0, 0, 255, 0, 0, 0, 255])
        chunks = _decode(_ihdr(bit_depth=2, color_type=3), _chunk(b"PLTE", plte))
        palette = extract_palette(chunks, extract_header(chunks))

        assert palette is not None
        assert palette.entry_count == 3
        assert len(palette) == 9
        assert palette.entries().shape == (3, 3)
        assert palette.entries()[2].tolist() == [0, 0, 255]

    def test_suggested_palette_for_truecolour(self) -> None:
        """RGB images may carry a PLTE as a suggested palette."""
        chunks = _decode(_ihdr(color_type=2), _chunk(b"PLTE", bytes(30)))
        palette = extract_palette(chunks, extract_header(chunks))
        assert palette is not None
        assert palette.entry_count == 10

    def test_too_many_entries_for_bit_depth(self) -> None:
        """A 4-bit image can index at most 16 entries."""
        chunks = _decode(_ihdr(bit_depth=4, color_type=3), _chunk(b"PLTE", bytes(51)))
        with pytest.raises(RangeError, match="at most 16"):
            extract_palette(chunks, extract_header(chunks))

    def test_oversized_length_is_range_error_even_if_not_triplets(self) -> None:
        """Overflow is reported before the triplet check."""
        chunks = _decode(_ihdr(bit_depth=4, color_type=3), _chunk(b"PLTE", bytes(50)))
        with pytest.raises(RangeError):
            extract_palette(chunks, extract_header(chunks))

    def test_palette_capped_at_256_entries(self) -> None:
        """Sixteen-bit truecolour still allows only 256 entries."""
        chunks = _decode(_ihdr(bit_depth=16, color_type=6), _chunk(b"PLTE", bytes(257 * 3)))
        with pytest.raises(RangeError, match="256"):
            extract_palette(chunks, extract_header(chunks))

    def test_partial_triplet(self) -> None:
        """A length that is not a multiple of three is malformed."""
        chunks = _decode(_ihdr(bit_depth=8, color_type=3), _chunk(b"PLTE", bytes(10)))
        with pytest.raises(FormatError, match="multiple of 3") as excinfo:
            extract_palette(chunks, extract_header(chunks))
        assert excinfo.value.chunk_index == 1

    def test_palette_after_idat_is_rejected(self) -> None:
        """PLTE must come before the first IDAT chunk."""
        chunks = _decode(_ihdr(color_type=3), _chunk(b"IDAT", b"x"), _chunk(b"PLTE", bytes(6)))
        with pytest.raises(FormatError, match="precede the first IDAT") as excinfo:
            extract_palette(chunks, extract_header(chunks))
        assert excinfo.value.chunk_index == 2

    def test_palette_before_idat_is_accepted(self) -> None:
        """The usual PLTE-then-IDAT order passes."""
        chunks = _decode(_ihdr(color_type=3), _chunk(b"PLTE", bytes(6)), _chunk(b"IDAT", b"x"))
        palette = extract_palette(chunks, extract_header(chunks))
        assert palette is not None
        assert palette.entry_count == 2

    @pytest.mark.parametrize("color_type", [0, 4])
    def test_grayscale_must_not_have_palette(self, color_type: int) -> None:
        """PLTE is forbidden for grayscale colour types."""
        chunks = _decode(_ihdr(color_type=color_type), _chunk(b"PLTE", bytes(3)))
        with pytest.raises(FormatError, match="not allowed"):
            extract_palette(chunks, extract_header(chunks))


# ── Tests: IDAT run ───────────────────────────────────────────────────────


class TestCollectCompressedStream:
    """Tests for ``collect_compressed_stream``."""

    def test_collects_consecutive_idat(self) -> None:
        """Payloads are concatenated in stream order."""
        chunks = _decode(_ihdr(), _chunk(b"IDAT", b"ab"), _chunk(b"IDAT", b"cde"), _chunk(b"IDAT", b"f"))
        stream = collect_compressed_stream(chunks)

        assert len(stream.chunks) == 3
        assert stream.payloads == (b"ab", b"cde", b"f")
        assert stream.data == b"abcdef"
        assert len(stream) == 6

    def test_no_idat_yields_empty_stream(self) -> None:
        """A stream without IDAT is empty, not an error."""
        stream = collect_compressed_stream(_decode(_ihdr()))
        assert stream.chunks == ()
        assert stream.data == b""

    def test_ancillary_before_and_after_run(self) -> None:
        """Non-IDAT chunks may surround the run."""
        chunks = _decode(
            _ihdr(),
            _chunk(b"gAMA", b"\x00\x00\xb1\x8f"),
            _chunk(b"IDAT", b"a"),
            _chunk(b"IDAT", b"b"),
            _chunk(b"tEXt", b"k\x00v"),
        )
        assert collect_compressed_stream(chunks).data == b"ab"

    def test_interrupted_run_raises(self) -> None:
        """An IDAT after non-IDAT chunks breaks the run at the chunk just before it."""
        chunks = _decode(
            _ihdr(),
            _chunk(b"IDAT", b"a"),
            _chunk(b"tEXt", b"k\x00v"),
            _chunk(b"zTXt", b"k\x00\x00x"),
            _chunk(b"IDAT", b"b"),
        )
        with pytest.raises(FormatError, match="zTXt chunk at index 3") as excinfo:
            collect_compressed_stream(chunks)
        assert excinfo.value.chunk_index == 3
        assert excinfo.value.offset == chunks[3].offset

    @pytest.mark.parametrize("interrupter", [b"PLTE", b"ABCD"])
    def test_critical_chunk_interrupts_run(self, interrupter: bytes) -> None:
        """A critical chunk between two IDAT chunks is reported by index."""
        chunks = _decode(_ihdr(), _chunk(b"IDAT", b"a"), _chunk(interrupter, bytes(3)), _chunk(b"IDAT", b"b"))
        assert chunks[2].is_critical

        with pytest.raises(FormatError, match=f"{interrupter.decode()} chunk at index 2") as excinfo:
            collect_compressed_stream(chunks)
        assert excinfo.value.chunk_index == 2
