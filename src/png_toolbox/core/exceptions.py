"""Exception hierarchy for the png-toolbox framework."""


class ToolboxError(Exception):
    """Base exception for all png-toolbox errors."""


class ToolError(ToolboxError):
    """Raised when a tool encounters an error during execution."""


class ValidationError(ToolboxError):
    """Raised when parameter validation fails."""


class PipelineError(ToolboxError):
    """Raised when a pipeline encounters an error."""


class FormatError(ToolboxError):
    """Raised when the container structure is malformed.

    Args:
        message: Human-readable description.
        offset: Byte offset of the offending data, if known.
        chunk_index: Index of the offending chunk, if known.
    """

    def __init__(self, message: str, *, offset: int | None = None, chunk_index: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset
        self.chunk_index = chunk_index


class RangeError(ToolboxError, ValueError):
    """Raised when a numeric value falls outside its permitted range."""


class DataTypeError(ToolboxError, TypeError):
    """Raised when a value or field combination has an invalid type."""


class UnsupportedError(ToolboxError):
    """Raised for inputs outside the supported capability set (e.g. 64-bit integers)."""
