"""PNG Inspector tool — validates a PNG's chunk structure and reports its metadata."""

from png_toolbox.tools.png_inspector.tool import PngInspectorTool

__all__ = ["PngInspectorTool"]
