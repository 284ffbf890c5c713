"""Pure IDAT export logic — no front-end imports allowed.

The exported file is the byte-for-byte concatenation of every IDAT
payload: a single zlib stream ready for an external inflate and
defilter stage.
"""

from __future__ import annotations

import logging
from pathlib import Path

from png_toolbox.core.datatypes import PngStructure, StreamExportResult
from png_toolbox.core.events import PROGRESS, EventBus
from png_toolbox.core.exceptions import ToolError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".zlib"


def default_output_path(source: Path, suffix: str = DEFAULT_SUFFIX) -> Path:
    """Return ``<dir>/<stem>.idat<suffix>`` next to *source*."""
    return source.with_name(f"{source.stem}.idat{suffix}")


def validate_export_params(*, output_path: Path, overwrite: bool) -> None:
    """Validate the export destination.

    Args:
        output_path: Destination file.
        overwrite: Whether an existing file may be replaced.

    Raises:
        ValidationError: If the destination is a directory, or exists and
            *overwrite* is not set.
    """
    if output_path.is_dir():
        msg = f"Output path is a directory: '{output_path}'"
        raise ValidationError(msg)
    if output_path.exists() and not overwrite:
        msg = f"Output file already exists: '{output_path}' (use overwrite to replace it)"
        raise ValidationError(msg)


def export_stream(
    structure: PngStructure,
    source: Path,
    output_path: Path,
    *,
    event_bus: EventBus | None = None,
) -> StreamExportResult:
    """Write the concatenated IDAT payloads of *structure* to *output_path*.

    Args:
        structure: A decoded PNG.
        source: The PNG the structure was read from (for reporting).
        output_path: Destination file; parent directories are created.
        event_bus: Optional bus for ``progress`` events.

    Returns:
        A ``StreamExportResult`` describing the written file.

    Raises:
        ToolError: If the file cannot be written.
    """
    stream = structure.compressed_stream
    total = len(stream.chunks)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("wb") as fh:
            for idx, payload in enumerate(stream.payloads):
                fh.write(payload)
                if event_bus is not None:
                    event_bus.emit(
                        PROGRESS,
                        tool="idat_exporter",
                        current=idx + 1,
                        total=total,
                        message=f"IDAT #{idx + 1} ({len(payload)} bytes)",
                    )
    except OSError as exc:
        msg = f"Cannot write '{output_path}': {exc}"
        raise ToolError(msg) from exc

    logger.info("Wrote %d bytes from %d IDAT chunk(s) to %s", len(stream), total, output_path)
    return StreamExportResult(source=source, output_path=output_path, size=len(stream), chunk_count=total)
