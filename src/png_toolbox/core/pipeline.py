"""Pipeline & PipelineStage — chains tools via input/output ports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from png_toolbox.core.exceptions import PipelineError

if TYPE_CHECKING:
    from png_toolbox.core.base_tool import BaseTool

logger = logging.getLogger(__name__)


@dataclass
class PipelineStage:
    """A single stage in a pipeline, binding a tool name to its parameters.

    Attributes:
        tool_name: Registry slug of the tool to execute.
        params: Parameter dictionary passed to ``tool.run()``.
    """

    tool_name: str
    params: dict[str, Any] = field(default_factory=dict)


class Pipeline:
    """Ordered chain of ``PipelineStage`` objects.

    The output of stage *N* becomes the ``input_data`` of stage *N+1*,
    e.g. ``png_inspector`` → ``idat_exporter``.

    Args:
        name: Human-readable pipeline name.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._stages: list[PipelineStage] = []

    @property
    def stages(self) -> list[PipelineStage]:
        """Return a copy of the ordered stage list."""
        return list(self._stages)

    def add_stage(self, tool_name: str, params: dict[str, Any] | None = None) -> None:
        """Append a stage to the pipeline.

        Args:
            tool_name: Registry slug of the tool (e.g. ``"png_inspector"``).
            params: Parameters forwarded to the tool's ``run()`` method.
        """
        self._stages.append(PipelineStage(tool_name=tool_name, params=params or {}))

    def validate(self) -> None:
        """Check that the pipeline has at least one stage.

        Raises:
            PipelineError: If the pipeline is empty.
        """
        if not self._stages:
            msg = f"Pipeline '{self.name}' has no stages"
            raise PipelineError(msg)

    def resolve(self) -> list[BaseTool]:
        """Look up every stage's tool and check that adjacent ports connect.

        Returns:
            The tool instances, in stage order.

        Raises:
            PipelineError: If the pipeline is empty, a tool is unknown, or a
                stage cannot accept what the previous stage produces.
        """
        from png_toolbox.core.registry import ToolRegistry

        self.validate()
        registry = ToolRegistry()
        tools: list[BaseTool] = []

        for stage in self._stages:
            tool = registry.get(stage.tool_name)
            if tool is None:
                msg = f"Tool '{stage.tool_name}' not found in registry"
                raise PipelineError(msg)
            if tools:
                produced = set(tools[-1].output_types())
                if not produced & set(tool.input_types()):
                    msg = f"Stage '{stage.tool_name}' cannot consume output of '{tools[-1].name}'"
                    raise PipelineError(msg)
            tools.append(tool)

        return tools

    def run(self, input_data: Any = None) -> Any:
        """Execute all stages in order, threading data through the chain.

        Args:
            input_data: Initial data fed into the first stage.

        Returns:
            The result produced by the last stage.

        Raises:
            PipelineError: If the pipeline cannot be resolved.
        """
        result = input_data
        for stage, tool in zip(self._stages, self.resolve(), strict=True):
            logger.info("Pipeline '%s': running stage '%s'", self.name, stage.tool_name)
            result = tool.run(params=stage.params, input_data=result)
        return result
