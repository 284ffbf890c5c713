"""BaseTool ABC — the contract every tool in the toolbox implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from png_toolbox.core.events import EventBus
from png_toolbox.core.exceptions import ValidationError


@dataclass
class ToolParameter:
    """Declarative parameter definition — drives CLI options and validation."""

    name: str
    label: str
    type: type
    default: Any = None
    choices: list[Any] | None = None
    help: str = ""


class BaseTool(ABC):
    """Template Method base for every tool in the toolbox.

    Subclasses declare their metadata, parameters and pipeline ports, and
    implement ``_do_execute``.  Callers only ever use ``run``.
    """

    # ── metadata (override in subclass) ────────────────────────
    name: str
    display_name: str
    description: str
    version: str = "0.1.0"
    category: str = "General"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the tool with an optional event bus.

        Args:
            event_bus: Bus for progress, log and warning events.
                       A private bus is created if none is provided.
        """
        self.event_bus = event_bus or EventBus()

    # ── parameter schema ───────────────────────────────────────
    @abstractmethod
    def define_parameters(self) -> list[ToolParameter]:
        """Return the list of parameters this tool accepts."""
        ...

    # ── I/O port declarations (for pipeline chaining) ─────────
    @abstractmethod
    def input_types(self) -> list[type]:
        """Return data types this tool can receive (empty list = entry point)."""
        ...

    @abstractmethod
    def output_types(self) -> list[type]:
        """Return data types this tool produces (empty list = terminal)."""
        ...

    # ── lifecycle (Template Method skeleton) ───────────────────
    def run(self, params: dict[str, Any], input_data: Any = None) -> Any:
        """Execute the tool — public entry point, do NOT override.

        Args:
            params: Parameter values keyed by parameter name.
            input_data: Optional output of a preceding pipeline stage.

        Returns:
            The result produced by ``_do_execute``.
        """
        self.validate(params)
        self._pre_execute(params)
        result = self._do_execute(params, input_data)
        self._post_execute(result)
        return result

    def validate(self, params: dict[str, Any]) -> None:
        """Validate params against ``define_parameters()``.

        The base implementation rejects unknown keys, values outside a
        parameter's ``choices``, and non-bool values for bool parameters.

        Args:
            params: Parameter dict to validate.

        Raises:
            ValidationError: If any parameter is invalid.
        """
        declared = {param.name: param for param in self.define_parameters()}
        unknown = sorted(set(params) - set(declared))
        if unknown:
            msg = f"Unknown parameter(s) for '{self.name}': {', '.join(unknown)}"
            raise ValidationError(msg)

        for param in declared.values():
            value = params.get(param.name)
            if value is None:
                continue
            if param.choices is not None and value not in param.choices:
                msg = f"Parameter '{param.name}' must be one of {param.choices}, got '{value}'"
                raise ValidationError(msg)
            if param.type is bool and not isinstance(value, bool):
                msg = f"Parameter '{param.name}' must be a bool, got {type(value).__name__}"
                raise ValidationError(msg)

    def _pre_execute(self, params: dict[str, Any]) -> None:  # noqa: B027
        """Hook called before execution (optional override)."""

    @abstractmethod
    def _do_execute(self, params: dict[str, Any], input_data: Any) -> Any:
        """Core logic — MUST override.  Pure computation, no front-end code.

        Args:
            params: Validated parameter dictionary.
            input_data: Optional input from a pipeline stage.

        Returns:
            The tool's result.
        """
        ...

    def _post_execute(self, result: Any) -> None:  # noqa: B027
        """Hook called after execution (optional override)."""
