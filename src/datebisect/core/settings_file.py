"""Configuration file loading: KEY=VALUE files and YAML with includes."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import dotenv_values
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from datebisect.core.errors import ConfigError
from datebisect.core.log import logger

YAML_SUFFIXES = (".yaml", ".yml")


class ConfigFileSettingsSource(YamlConfigSettingsSource):
    """Settings source for the file named on the command line.

    Two formats are accepted:
    - shell-style KEY=VALUE assignments (``LOW_DATE="2024-01-01"``),
      read with python-dotenv; any file not ending in .yaml/.yml
    - YAML mappings, where an ``include:`` directive pulls in other
      YAML files relative to the including one. The including file
      wins over what it includes.

    Keys are matched case-insensitively, so LOW_DATE and low_date
    both set BisectConfig.low_date.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], config_file: str | os.PathLike
    ):
        """Initialize from one configuration file.

        Args:
            settings_cls: The Settings class being initialized
            config_file: Path of the configuration file

        Raises:
            ConfigError: If the file does not exist or is malformed
        """
        super().__init__(settings_cls, yaml_file=Path(config_file))

    def _read_files(self, files, *args, **kwargs):
        """Load the configuration file into a flat, lower-cased dict.

        Args:
            files: The configuration file path

        Returns:
            Dictionary of setting name to raw value
        """
        if isinstance(files, (str, os.PathLike)):
            files = [files]

        result = {}
        for file in files or []:
            file_path = Path(file).expanduser()
            if not file_path.is_file():
                raise ConfigError(f"Configuration file not found: {file_path}")

            with logger.span(
                "Configuration loading", file=str(file_path)
            ):
                if file_path.suffix.lower() in YAML_SUFFIXES:
                    data = self._load_yaml_recursive(file_path, set())
                else:
                    data = self._load_assignments(file_path)
            result = self._deep_merge(result, data)

        return self._normalize_keys(result)

    def _load_assignments(self, filepath: Path) -> dict:
        """Read KEY=VALUE lines.

        Comments, blank lines, quoting and ``export`` prefixes are
        handled by python-dotenv. Variable references are not
        expanded so dates survive unchanged.
        """
        values = dotenv_values(filepath, interpolate=False)
        return {key: value for key, value in values.items() if key}

    def _load_yaml_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load file and process include: directives recursively.

        Args:
            filepath: Path to YAML file to load
            visited: Set of already-visited files for cycle detection

        Returns:
            Dictionary with all includes resolved and merged

        Raises:
            ConfigError: If an include is circular or the file is
                not a mapping
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ConfigError(f"Circular include: {filepath}")
        visited.add(filepath)

        try:
            with open(filepath, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{filepath} must contain a mapping of settings")

        if "include" in data:
            includes = data.pop("include") or []
            if isinstance(includes, str):
                includes = [includes]

            for inc in includes:
                inc_path = self._resolve_path(inc, filepath)
                if not inc_path.is_file():
                    raise ConfigError(
                        f"Included file not found: {inc_path} "
                        f"(from {filepath})"
                    )
                logger.debug(
                    f"Including {inc_path.name}",
                    included_from=str(filepath),
                )
                inc_data = self._load_yaml_recursive(inc_path, visited.copy())
                data = self._deep_merge(inc_data, data)

        return data

    def _resolve_path(self, include_path: str, relative_to: Path) -> Path:
        """Resolve include path relative to including file."""
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

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

    @staticmethod
    def _normalize_keys(data: dict) -> dict:
        """Lower-case top-level keys; empty strings mean unset."""
        return {
            str(key).lower(): value
            for key, value in data.items()
            if value is not None and value != ""
        }
