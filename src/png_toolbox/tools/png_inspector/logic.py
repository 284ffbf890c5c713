"""Pure PNG inspection logic — no front-end imports allowed.

A decode pass is strictly linear::

    bytes -> signature -> chunks -> IHDR -> PLTE -> IDAT run -> PngStructure

Pixel data is never decompressed; the assembled IDAT stream is handed
to whoever consumes the ``PngStructure``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from png_toolbox.core.datatypes import ColorType, InspectionResult, PngStructure
from png_toolbox.core.events import LOG, PROGRESS, WARNING, EventBus
from png_toolbox.core.exceptions import FormatError, ToolError, ValidationError
from png_toolbox.tools.png_inspector._chunks import decode_chunks, validate_signature
from png_toolbox.tools.png_inspector._structure import (
    collect_compressed_stream,
    extract_header,
    extract_palette,
)

logger = logging.getLogger(__name__)

_TOOL = "png_inspector"


# ── Decoding ──────────────────────────────────────────────────────────────


def decode_png(data: bytes) -> PngStructure:
    """Run a full structural decode pass over an in-memory PNG.

    Corrupted chunks (CRC mismatch) do not stop the decode; they are
    listed in ``PngStructure.corrupted_chunks``.

    Args:
        data: The complete file contents.

    Returns:
        The decoded ``PngStructure``.

    Raises:
        FormatError: For a bad signature, broken chunk stream, misplaced
            or malformed IHDR/PLTE, an interrupted IDAT run, a missing
            palette on an indexed image, or no IDAT at all.
        DataTypeError: For an illegal colour type / bit depth pair.
        RangeError: If the palette is larger than the bit depth allows.
    """
    validate_signature(data)
    chunks = decode_chunks(data)
    header = extract_header(chunks)

    palette = extract_palette(chunks, header)
    if palette is None and header.color_type is ColorType.INDEXED:
        msg = "Indexed-colour image has no PLTE chunk"
        raise FormatError(msg)

    stream = collect_compressed_stream(chunks)
    if not stream.chunks:
        msg = "No IDAT chunk found"
        raise FormatError(msg)

    logger.debug(
        "Decoded %d chunks: %dx%d %s, %d IDAT chunk(s), %d compressed bytes",
        len(chunks),
        header.width,
        header.height,
        header.color_type.name,
        len(stream.chunks),
        len(stream),
    )
    return PngStructure(header=header, palette=palette, chunks=chunks, compressed_stream=stream)


# ── Validation ────────────────────────────────────────────────────────────


def validate_inspector_params(*, input_path: Path | None) -> None:
    """Validate inspector parameters before any bytes are read.

    Args:
        input_path: Path to the PNG file.

    Raises:
        ValidationError: If the path is missing or not a file.
    """
    if input_path is None:
        msg = "A PNG file path is required"
        raise ValidationError(msg)
    if not input_path.is_file():
        msg = f"PNG file does not exist: '{input_path}'"
        raise ValidationError(msg)


# ── Public API ────────────────────────────────────────────────────────────


def inspect_png(
    path: Path,
    *,
    fail_on_corrupt: bool = False,
    event_bus: EventBus | None = None,
) -> InspectionResult:
    """Read and decode a PNG file, reporting each chunk.

    Args:
        path: The PNG file to inspect.
        fail_on_corrupt: Raise instead of warning when a chunk's CRC
            does not match.
        event_bus: Optional bus for ``progress`` / ``warning`` events.

    Returns:
        An ``InspectionResult`` pairing the path with its structure.

    Raises:
        ToolError: If the file cannot be read, or *fail_on_corrupt* is set
            and at least one chunk is corrupted.
        FormatError: If the file is not a structurally valid PNG.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read '{path}': {exc}"
        raise ToolError(msg) from exc

    structure = decode_png(data)

    total = len(structure.chunks)
    if event_bus is not None:
        for chunk in structure.chunks:
            event_bus.emit(
                PROGRESS,
                tool=_TOOL,
                current=chunk.index + 1,
                total=total,
                message=f"{chunk.name} ({chunk.length} bytes)",
            )

    check_corruption(structure, path, fail_on_corrupt=fail_on_corrupt, event_bus=event_bus)

    if event_bus is not None:
        event_bus.emit(
            LOG,
            tool=_TOOL,
            message=f"{path.name}: {total} chunks, {len(structure.corrupted_chunks)} corrupted",
        )
    return InspectionResult(path=path, structure=structure)


def check_corruption(
    structure: PngStructure,
    path: Path,
    *,
    fail_on_corrupt: bool = False,
    event_bus: EventBus | None = None,
    tool: str = _TOOL,
) -> None:
    """Apply the checksum-mismatch policy to a decoded PNG.

    Emits one ``warning`` event per corrupted chunk, then raises if
    *fail_on_corrupt* is set and any chunk is corrupted.

    Args:
        structure: The decoded structure.
        path: The file it was read from (for messages).
        fail_on_corrupt: Reject instead of warning.
        event_bus: Optional bus for ``warning`` events.
        tool: Tool slug reported in the events.

    Raises:
        ToolError: If *fail_on_corrupt* is set and a chunk is corrupted.
    """
    corrupted = structure.corrupted_chunks
    if event_bus is not None:
        for chunk in corrupted:
            event_bus.emit(
                WARNING,
                tool=tool,
                chunk_index=chunk.index,
                message=f"CRC mismatch in {chunk.name} chunk #{chunk.index}",
            )

    if corrupted and fail_on_corrupt:
        names = ", ".join(f"{c.name}#{c.index}" for c in corrupted)
        msg = f"{path.name}: {len(corrupted)} corrupted chunk(s): {names}"
        raise ToolError(msg)


def describe_structure(structure: PngStructure) -> dict[str, Any]:
    """Return a plain dict summarising a decoded PNG.

    Args:
        structure: The decoded structure.

    Returns:
        Header fields, palette size, IDAT totals, and corruption count.
    """
    header = structure.header
    return {
        "width": header.width,
        "height": header.height,
        "bit_depth": header.bit_depth,
        "color_type": header.color_type.name.lower(),
        "interlace": header.interlace_method.name.lower(),
        "palette_entries": structure.palette.entry_count if structure.palette is not None else 0,
        "chunk_count": len(structure.chunks),
        "idat_chunks": len(structure.compressed_stream.chunks),
        "compressed_size": len(structure.compressed_stream),
        "corrupted": len(structure.corrupted_chunks),
    }


def describe_chunks(structure: PngStructure) -> list[dict[str, Any]]:
    """Return one summary dict per chunk, in file order."""
    return [
        {
            "index": chunk.index,
            "offset": chunk.offset,
            "type": chunk.name,
            "length": chunk.length,
            "critical": chunk.is_critical,
            "safe_to_copy": chunk.is_safe_to_copy,
            "crc_ok": not chunk.is_corrupted,
        }
        for chunk in structure.chunks
    ]
