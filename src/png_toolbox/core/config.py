"""ConfigManager — global and per-tool settings read from TOML files."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from png_toolbox.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "png-toolbox"


class ConfigManager:
    """Layered configuration: per-tool values override global ones.

    Layout on disk::

        <config_dir>/config.toml            global settings
        <config_dir>/tools/<tool>.toml      per-tool overrides

    Args:
        config_dir: Root directory for configuration files.
                    Defaults to ``~/.config/png-toolbox/``.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        self._config_dir = config_dir or DEFAULT_CONFIG_DIR
        self._global: dict[str, Any] = {}
        self._per_tool: dict[str, dict[str, Any]] = {}

    @property
    def config_dir(self) -> Path:
        """Return the configuration directory path."""
        return self._config_dir

    def load(self) -> None:
        """Load global and per-tool config from ``config_dir``.

        Missing files are skipped.

        Raises:
            ValidationError: If a file exists but is not valid TOML.
        """
        global_file = self._config_dir / "config.toml"
        if global_file.is_file():
            self._global = self._read_toml(global_file)
            logger.info("Loaded global config from %s", global_file)

        tools_dir = self._config_dir / "tools"
        if tools_dir.is_dir():
            for toml_file in sorted(tools_dir.glob("*.toml")):
                self._per_tool[toml_file.stem] = self._read_toml(toml_file)
                logger.info("Loaded config for tool '%s'", toml_file.stem)

    def get(self, key: str, *, tool: str | None = None, default: Any = None) -> Any:
        """Retrieve a config value, checking the tool's own settings first.

        Args:
            key: The configuration key.
            tool: Tool slug whose overrides take precedence.
            default: Fallback value when the key is not found.

        Returns:
            The configuration value, or *default*.
        """
        if tool and tool in self._per_tool:
            value = self._per_tool[tool].get(key)
            if value is not None:
                return value
        return self._global.get(key, default)

    def set_global(self, key: str, value: Any) -> None:
        """Set a global configuration value (in-memory only)."""
        self._global[key] = value

    @staticmethod
    def _read_toml(path: Path) -> dict[str, Any]:
        with path.open("rb") as fh:
            try:
                return tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {path}: {exc}"
                raise ValidationError(msg) from exc
