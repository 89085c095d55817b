"""
Configuration file loader for devbrowser.

Reads devbrowser.{yaml,yml,json,toml} and layers environment variables
and programmatic overrides on top of it:

    defaults < file < DEVBROWSER_* variables < overrides

DEVBROWSER_CONFIG names the file explicitly and skips the search.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from pydantic import ValidationError

from devbrowser.errors import DevBrowserError

from .defaults import (
    DEFAULT_CONFIG_EXTENSIONS,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_CONFIG_SEARCH_PATHS,
    ENV_PREFIX,
)
from .env import load_env_config
from .options import DevBrowserConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = f"{ENV_PREFIX}CONFIG"

PathLike = Union[str, Path]


class ConfigurationError(DevBrowserError):
    """A configuration source is missing, unreadable or invalid."""


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    return yaml.safe_load(text) or {}


def _parse_toml(text: str) -> Any:
    return tomllib.loads(text)


PARSERS: dict[str, Callable[[str], Any]] = {
    ".json": _parse_json,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
    ".toml": _parse_toml,
}

PARSE_ERRORS = (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError)


def load_file(path: PathLike) -> dict[str, Any]:
    """Read one configuration file; the format follows the extension.

    Raises:
        ConfigurationError: Missing file, unknown extension, syntax error,
            or a document that is not a mapping.
    """
    path = Path(path).expanduser()
    parser = PARSERS.get(path.suffix.lower())
    if parser is None:
        raise ConfigurationError(f"Unsupported configuration format: {path.suffix or path.name}")

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}") from None
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        data = parser(text)
    except PARSE_ERRORS as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {path}")
    return data


def find_config_file(
    filename: str = DEFAULT_CONFIG_FILENAME,
    search_paths: Optional[list[str]] = None,
    extensions: Optional[list[str]] = None,
) -> Optional[Path]:
    """First `<dir>/<filename><ext>` that exists, directories in order."""
    for directory in search_paths or DEFAULT_CONFIG_SEARCH_PATHS:
        base = Path(directory).expanduser()
        for ext in extensions or DEFAULT_CONFIG_EXTENSIONS:
            candidate = base / f"{filename}{ext}"
            if candidate.is_file():
                return candidate
    return None


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Deep merge mappings; later ones win key by key."""
    merged: dict[str, Any] = {}
    for config in configs:
        _merge_into(merged, config)
    return merged


def _merge_into(target: dict[str, Any], source: dict[str, Any]) -> None:
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge_into(current, value)
        elif isinstance(value, dict):
            target[key] = merge_configs(value)
        else:
            target[key] = value


class ConfigLoader:
    """Builds a DevBrowserConfig from every configured source.

    Args:
        config_file: Explicit file; skips DEVBROWSER_CONFIG and the search.
        search_paths: Directories searched for devbrowser.<ext>.
        load_env: Read DEVBROWSER_* variables.
        auto_find: Search for a file when none is given.
    """

    def __init__(
        self,
        config_file: Optional[PathLike] = None,
        search_paths: Optional[list[str]] = None,
        load_env: bool = True,
        auto_find: bool = True,
    ):
        self.config_file = Path(config_file) if config_file else None
        self.search_paths = search_paths or DEFAULT_CONFIG_SEARCH_PATHS
        self.load_env = load_env
        self.auto_find = auto_find

    def resolve_file(self) -> Optional[Path]:
        """The file that load() will read, if any."""
        if self.config_file is not None:
            return self.config_file
        if self.load_env and os.environ.get(CONFIG_FILE_ENV):
            return Path(os.environ[CONFIG_FILE_ENV])
        if self.auto_find:
            return find_config_file(search_paths=self.search_paths)
        return None

    def load(self, overrides: Optional[dict[str, Any]] = None) -> DevBrowserConfig:
        """
        Raises:
            ConfigurationError: An unreadable file, a malformed environment
                variable, or merged values that fail validation.
        """
        layers: list[dict[str, Any]] = []

        path = self.resolve_file()
        if path is not None:
            layers.append(load_file(path))
            logger.info(f"Loaded configuration from {path}")

        if self.load_env:
            try:
                layers.append(load_env_config())
            except ValueError as e:
                raise ConfigurationError(f"Invalid environment variable: {e}") from e

        if overrides:
            layers.append(overrides)

        try:
            return DevBrowserConfig.from_dict(merge_configs(*layers))
        except ValidationError as e:
            source = f" in {path}" if path is not None else ""
            raise ConfigurationError(f"Invalid configuration{source}: {e}") from e


def load_config(
    config_file: Optional[PathLike] = None,
    overrides: Optional[dict[str, Any]] = None,
    load_env: bool = True,
) -> DevBrowserConfig:
    """Load configuration from file, environment and overrides.

    Example:
        >>> config = load_config("devbrowser.yaml", overrides={"session": {"port": 5173}})
    """
    return ConfigLoader(config_file=config_file, load_env=load_env).load(overrides=overrides)
