"""IDAT Exporter tool — writes a PNG's assembled compressed stream to disk."""

from png_toolbox.tools.idat_exporter.tool import IdatExporterTool

__all__ = ["IdatExporterTool"]
