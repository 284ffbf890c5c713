"""ToolRegistry — singleton that auto-discovers and caches tool instances."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from png_toolbox.core.base_tool import BaseTool
    from png_toolbox.core.events import EventBus

logger = logging.getLogger(__name__)

_TOOLS_PACKAGE = "png_toolbox.tools"


class ToolRegistry:
    """Singleton registry of every ``BaseTool`` under ``png_toolbox.tools``.

    Each sub-package that ships a ``tool.py`` module is imported and every
    concrete ``BaseTool`` subclass in it is instantiated once.
    """

    _instance: ToolRegistry | None = None
    _tools: dict[str, BaseTool]

    def __new__(cls) -> ToolRegistry:
        """Return the singleton instance, creating it on first call."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._tools = {}
        return cls._instance

    def discover(self, event_bus: EventBus | None = None) -> None:
        """Import ``png_toolbox.tools.*.tool`` and register the tools found.

        Args:
            event_bus: Shared event bus injected into each tool.
        """
        from png_toolbox.core.base_tool import BaseTool

        tools_package = importlib.import_module(_TOOLS_PACKAGE)

        for _importer, module_name, is_pkg in pkgutil.iter_modules(tools_package.__path__):
            if not is_pkg:
                continue
            try:
                tool_module = importlib.import_module(f"{_TOOLS_PACKAGE}.{module_name}.tool")
            except ModuleNotFoundError:
                logger.debug("Skipping %s — no tool.py found", module_name)
                continue

            for attr in vars(tool_module).values():
                if (
                    isinstance(attr, type)
                    and issubclass(attr, BaseTool)
                    and attr is not BaseTool
                    and attr.__module__ == tool_module.__name__
                ):
                    tool_instance = attr(event_bus=event_bus)
                    self._tools[tool_instance.name] = tool_instance
                    logger.info("Registered tool: %s", tool_instance.name)

    def get(self, name: str) -> BaseTool | None:
        """Look up a tool by its slug (e.g. ``"png_inspector"``)."""
        return self._tools.get(name)

    def all_tools(self) -> dict[str, BaseTool]:
        """Return all registered tools as a name → instance mapping."""
        return dict(self._tools)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton — intended for testing only."""
        cls._instance = None
