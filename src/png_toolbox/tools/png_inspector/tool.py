"""PngInspectorTool — BaseTool wrapper for structural PNG decoding."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from png_toolbox.core.base_tool import BaseTool, ToolParameter
from png_toolbox.core.datatypes import InspectionResult, PathList
from png_toolbox.core.events import EventBus
from png_toolbox.core.exceptions import ValidationError
from png_toolbox.tools.png_inspector.logic import inspect_png, validate_inspector_params


class PngInspectorTool(BaseTool):
    """Decode a PNG file's chunk stream without touching pixel data.

    Checks the signature, verifies every chunk's CRC, and extracts the
    header, palette and assembled IDAT stream.
    """

    name = "png_inspector"
    display_name = "PNG Inspector"
    description = "Validate PNG chunk structure and report header, palette and IDAT layout"
    version = "0.1.0"
    category = "Image"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the inspector tool.

        Args:
            event_bus: Shared event bus for progress and warning events.
        """
        super().__init__(event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for PNG inspection."""
        return [
            ToolParameter(
                name="input",
                label="PNG file",
                type=Path,
                help="Path to the PNG file to inspect.",
            ),
            ToolParameter(
                name="fail_on_corrupt",
                label="Fail on corrupt",
                type=bool,
                default=False,
                help="Abort when any chunk's CRC does not match instead of warning.",
            ),
        ]

    def input_types(self) -> list[type]:
        """Accept a ``PathList`` from a preceding pipeline stage."""
        return [PathList]

    def output_types(self) -> list[type]:
        """Produce an ``InspectionResult``."""
        return [InspectionResult]

    def validate(self, params: dict[str, Any]) -> None:
        """Validate parameters with inspector-specific rules.

        When ``input`` is ``None`` the path may arrive later via pipeline
        ``input_data``, so the file check is skipped.

        Args:
            params: Parameter dict to validate.

        Raises:
            ValidationError: If parameters are invalid.
        """
        super().validate(params)

        raw_input = params.get("input")
        if raw_input is None:
            return
        validate_inspector_params(input_path=Path(raw_input))

    def _do_execute(self, params: dict[str, Any], input_data: Any) -> InspectionResult:
        """Run the inspection.

        Args:
            params: Validated parameter dictionary.
            input_data: Optional ``PathList`` from a preceding pipeline stage.

        Returns:
            An ``InspectionResult`` for the (first) input file.

        Raises:
            ValidationError: If no input path can be resolved.
        """
        if isinstance(input_data, PathList):
            if input_data.count == 0:
                msg = "Empty PathList received from pipeline"
                raise ValidationError(msg)
            png_path = input_data.paths[0]
            validate_inspector_params(input_path=png_path)
        else:
            raw_input = params.get("input")
            if raw_input is None:
                msg = "No input PNG file provided"
                raise ValidationError(msg)
            png_path = Path(raw_input)

        fail_on_corrupt: bool = params.get("fail_on_corrupt") or False
        return inspect_png(png_path, fail_on_corrupt=fail_on_corrupt, event_bus=self.event_bus)
