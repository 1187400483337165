"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from vendorpatch.core.log import logger

CONFIG_NAME = "vendorpatch.yaml"
DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def _cli_includes(argv: list[str]) -> list[str]:
    """Collect the values of every --include option in argv."""
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif argv[i].startswith("--include="):
            includes.append(argv[i].split("=", 1)[1])
        i += 1
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: directive and --include
    CLI support.

    Sources are deep-merged in priority order:
        package defaults < user config < ./vendorpatch.yaml
        < explicit yaml_file / --include files.
    Each file may list further files under include:, resolved
    relative to the including file.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        """Initialize with CLI include processing.

        Args:
            settings_cls: The Settings class being initialized
            yaml_file: Optional extra config file(s) to load last
        """
        includes = _cli_includes(sys.argv)

        base = yaml_file
        if base is None:
            base = []
        elif isinstance(base, (str, os.PathLike)):
            base = [base]
        files = list(base) + includes

        super().__init__(settings_cls, files or None)

    def _read_files(self, files, *args, **kwargs):
        """Load defaults, user config, project config and includes.

        Args:
            files: Explicit config files and CLI includes

        Returns:
            Deep-merged dictionary of all loaded data
        """
        files_to_load = [
            DEFAULTS_FILE,
            Path(user_config_dir("vendorpatch", appauthor=False)) / CONFIG_NAME,
            Path(CONFIG_NAME),
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        for file_path in files_to_load:
            if file_path.is_file():
                logger.debug("Loading configuration", file=str(file_path))
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)
            elif file_path in files_to_load[3:]:
                raise FileNotFoundError(f"Configuration file not found: {file_path}")

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load file and process include: directives recursively.

        Included files are merged first, so the including file's own
        keys win.

        Raises:
            ValueError: If a circular include is detected
            FileNotFoundError: If an included file does not exist
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        merged = {}
        for inc in includes:
            inc_path = Path(inc)
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            merged = self._deep_merge(
                merged, self._load_file_recursive(inc_path, visited.copy())
            )

        return self._deep_merge(merged, data)

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge override into base (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
