"""IdatExporterTool — BaseTool wrapper that dumps the compressed IDAT stream."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from png_toolbox.core.base_tool import BaseTool, ToolParameter
from png_toolbox.core.datatypes import InspectionResult, PathList, StreamExportResult
from png_toolbox.core.events import EventBus
from png_toolbox.core.exceptions import ToolError, ValidationError
from png_toolbox.tools.idat_exporter.logic import (
    DEFAULT_SUFFIX,
    default_output_path,
    export_stream,
    validate_export_params,
)
from png_toolbox.tools.png_inspector.logic import check_corruption, inspect_png, validate_inspector_params


class IdatExporterTool(BaseTool):
    """Write the concatenated IDAT payloads of a PNG to a standalone file.

    Accepts a PNG path directly, or the ``InspectionResult`` of a
    preceding ``png_inspector`` stage.  Chunks with a bad CRC raise a
    ``warning`` event, or abort the export when ``fail_on_corrupt`` is set.
    """

    name = "idat_exporter"
    display_name = "IDAT Exporter"
    description = "Export the assembled compressed (zlib) IDAT stream of a PNG"
    version = "0.1.0"
    category = "Image"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the exporter tool.

        Args:
            event_bus: Shared event bus for progress reporting.
        """
        super().__init__(event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for IDAT export."""
        return [
            ToolParameter(
                name="input",
                label="PNG file",
                type=Path,
                help="PNG file to export from (ignored when fed by a pipeline).",
            ),
            ToolParameter(
                name="output",
                label="Output file",
                type=Path,
                default=None,
                help="Destination file (default: <name>.idat.zlib next to the input).",
            ),
            ToolParameter(
                name="suffix",
                label="Output suffix",
                type=str,
                default=DEFAULT_SUFFIX,
                help="Suffix of the default output file name.",
            ),
            ToolParameter(
                name="overwrite",
                label="Overwrite",
                type=bool,
                default=False,
                help="Replace the output file if it already exists.",
            ),
            ToolParameter(
                name="fail_on_corrupt",
                label="Fail on corrupt",
                type=bool,
                default=False,
                help="Refuse to export when any chunk's CRC does not match.",
            ),
        ]

    def input_types(self) -> list[type]:
        """Accept an ``InspectionResult`` or a ``PathList``."""
        return [InspectionResult, PathList]

    def output_types(self) -> list[type]:
        """Produce a ``StreamExportResult``."""
        return [StreamExportResult]

    def validate(self, params: dict[str, Any]) -> None:
        """Validate parameters with exporter-specific rules.

        Args:
            params: Parameter dict to validate.

        Raises:
            ValidationError: If parameters are invalid.
        """
        super().validate(params)

        raw_input = params.get("input")
        if raw_input is not None:
            validate_inspector_params(input_path=Path(raw_input))

        suffix = params.get("suffix")
        if suffix is not None and (not isinstance(suffix, str) or "/" in suffix):
            msg = f"Invalid output suffix: {suffix!r}"
            raise ValidationError(msg)

    def _do_execute(self, params: dict[str, Any], input_data: Any) -> StreamExportResult:
        """Resolve the source, decode it if needed, and export the stream.

        Args:
            params: Validated parameter dictionary.
            input_data: ``InspectionResult`` or ``PathList`` from a pipeline.

        Returns:
            A ``StreamExportResult``.

        Raises:
            ValidationError: If no source can be resolved or the output is invalid.
            ToolError: If the file cannot be read or written, or a chunk is
                corrupted and ``fail_on_corrupt`` is set.
        """
        if isinstance(input_data, InspectionResult):
            inspection = input_data
        else:
            if isinstance(input_data, PathList):
                if input_data.count == 0:
                    msg = "Empty PathList received from pipeline"
                    raise ValidationError(msg)
                source = input_data.paths[0]
                validate_inspector_params(input_path=source)
            else:
                raw_input = params.get("input")
                if raw_input is None:
                    msg = "No input PNG file provided"
                    raise ValidationError(msg)
                source = Path(raw_input)
            inspection = inspect_png(source)

        check_corruption(
            inspection.structure,
            inspection.path,
            fail_on_corrupt=params.get("fail_on_corrupt") or False,
            event_bus=self.event_bus,
            tool=self.name,
        )

        raw_output = params.get("output")
        suffix: str = params.get("suffix") or DEFAULT_SUFFIX
        output_path = default_output_path(inspection.path, suffix) if raw_output is None else Path(raw_output)
        if output_path.resolve() == inspection.path.resolve():
            msg = f"Refusing to overwrite the source PNG '{inspection.path}'"
            raise ToolError(msg)

        validate_export_params(output_path=output_path, overwrite=params.get("overwrite") or False)
        return export_stream(inspection.structure, inspection.path, output_path, event_bus=self.event_bus)
