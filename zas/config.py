"""Site configuration for Zas.

The site configuration lives in ``.zas/config.yml`` and is a tree of named
sections. It is loaded once per build and shared read-only by every component.

Key objects:
- Config: read-only view over a nested mapping with typed lookups.
- load_config: loads the site configuration with defaults applied.
- load_yaml_mapping: parses a YAML document that must be a mapping.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_DIR = ".zas"
CONFIG_FILE = f"{CONFIG_DIR}/config.yml"
DIRECTORY_CONFIG_FILE = ".zas.yml"

# Executables: zas-<command> for subcommands, zas-m-<name> for MIME type plugins.
PLUGIN_PREFIX = "zas-"
MIME_PLUGIN_MARKER = "m-"

DEFAULT_CONFIG: dict[str, Any] = {
    "zas": {
        "layout": f"{CONFIG_DIR}/layout.html",
        "deploy": f"{CONFIG_DIR}/deploy",
        "port": 4000,
    },
    "site": {
        "baseurl": "",
        "imageurl": "",
        "language": "en",
    },
    "mimetypes": {
        "text/markdown": "markdown",
    },
}

_MISSING = object()


class Config(Mapping):
    """Read-only view over a nested configuration mapping.

    Lookups are exact, case-sensitive key matches. A missing key yields a
    default value instead of failing, unless ``require`` is used.
    """

    def __init__(self, data: Mapping | None = None):
        self._data: dict = dict(data or {})

    def __getitem__(self, key):
        return self._data[key]

    def __iter__(self) -> Iterator:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Config({self._data!r})"

    def get(self, key, default: Any = ""):
        value = self._data.get(key, default)
        if isinstance(value, Mapping) and not isinstance(value, Config):
            return Config(value)
        return value

    def section(self, name: str) -> Config:
        """Return a nested section, or an empty Config when absent."""
        value = self._data.get(name)
        if isinstance(value, Mapping):
            return value if isinstance(value, Config) else Config(value)
        return Config()

    def get_string(self, key: str) -> str:
        """Return a value as a string, empty when missing or null."""
        value = self._data.get(key)
        if value is None:
            return ""
        return str(value)

    def zas(self, key: str) -> str:
        """Return a string from the reserved ``zas`` section."""
        return self.section("zas").get_string(key)

    def lookup(self, path: str, default: Any = "") -> Any:
        """Look up a value by slash-delimited path.

        Args:
            path: Path like ``/site/baseurl`` (leading slash optional).
            default: Value returned when any segment is missing.

        Returns:
            The value at the path, or the default.
        """
        value = self._walk(path)
        if value is _MISSING:
            return default
        if isinstance(value, Mapping) and not isinstance(value, Config):
            return Config(value)
        return value

    def require(self, path: str, source: Path | str = CONFIG_FILE) -> Any:
        """Look up a value by path, raising ConfigError when absent."""
        value = self.lookup(path, _MISSING)
        if value is _MISSING:
            raise ConfigError(source, f"missing required key '{path}'")
        return value

    def _walk(self, path: str) -> Any:
        current: Any = self._data
        for segment in [s for s in path.split("/") if s]:
            if not isinstance(current, Mapping) or segment not in current:
                return _MISSING
            current = current[segment]
        return current

    def as_dict(self) -> dict:
        """Return a deep copy of the underlying mapping."""
        return copy.deepcopy(self._data)


def _deep_merge(base: dict, override: Mapping) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml_mapping(text: str, source: Path | str) -> dict:
    """Parse a YAML document that must be a mapping.

    Empty documents yield an empty mapping.

    Raises:
        ConfigError: If the YAML is invalid or not a mapping.
    """
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(source, f"invalid YAML: {exc}", exc) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(
            source, f"expected a mapping, got {type(loaded).__name__}"
        )
    return loaded


def load_config(project_root: Path) -> Config:
    """Load site configuration from .zas/config.yml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Config with defaults applied.
    """
    config_path = project_root / CONFIG_FILE
    data = DEFAULT_CONFIG
    if config_path.exists():
        loaded = load_yaml_mapping(config_path.read_text(encoding="utf-8"), config_path)
        data = _deep_merge(DEFAULT_CONFIG, loaded)
    return Config(copy.deepcopy(data))
