"""
Configuration storage for smix.

This module provides YAML-based configuration file persistence with:
- Config file discovery (explicit path, XDG location, ~/.smix.yaml)
- Template creation on first run
- Dotted key access ("commands.ask.provider")
- SMIX_* environment variable overrides
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .template import CONFIG_TEMPLATE

logger = logging.getLogger(__name__)


class ConfigKeyError(KeyError):
    """Raised when a requested configuration key is not set."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"key '{self.key}' not found in configuration"


def default_config_path(
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """
    Pick the configuration file to use when none is given explicitly.

    Order: $XDG_CONFIG_HOME/smix/config.yaml (or ~/.config/smix/config.yaml)
    if it exists, then ~/.smix.yaml if it exists, otherwise the XDG path so
    a new file is created there.

    Args:
        home: Home directory (defaults to Path.home())
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Path to the configuration file
    """
    home = home or Path.home()
    environ = os.environ if environ is None else environ

    xdg_config = environ.get("XDG_CONFIG_HOME") or str(home / ".config")
    xdg_path = Path(xdg_config) / "smix" / "config.yaml"
    dot_path = home / ".smix.yaml"

    if xdg_path.exists():
        return xdg_path
    if dot_path.exists():
        return dot_path
    return xdg_path


def ensure_config_exists(config_file: Path) -> bool:
    """
    Create the configuration file from the template if it is missing.

    Args:
        config_file: Path to the configuration file

    Returns:
        True if a new file was written, False if one already existed

    Raises:
        OSError: If the directory or file cannot be created
    """
    if config_file.exists():
        return False

    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    logger.info(f"Created configuration file at {config_file}")
    return True


class ConfigStore:
    """
    Layered key/value view over the YAML configuration file.

    Values are looked up by dotted key. An environment variable named
    SMIX_<KEY> (dots become underscores, upper-cased) overrides the file,
    e.g. SMIX_PROVIDER or SMIX_COMMANDS_ASK_MODEL.

    Attributes:
        config_file: Path to the YAML file backing this store.
    """

    ENV_PREFIX = "SMIX_"

    def __init__(
        self,
        config_file: Path,
        data: dict[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            config_file: Path to the configuration file
            data: Already-loaded configuration (load() reads the file otherwise)
            environ: Environment used for overrides (defaults to os.environ)
        """
        self.config_file = Path(config_file)
        self._data: dict[str, Any] = data if data is not None else {}
        self._environ = os.environ if environ is None else environ

    @classmethod
    def open(cls, config_file: Path | None = None) -> "ConfigStore":
        """
        Locate, create if needed, and load the configuration file.

        Args:
            config_file: Explicit path (from --config); discovered if omitted

        Returns:
            Loaded ConfigStore
        """
        path = Path(config_file) if config_file else default_config_path()
        ensure_config_exists(path)
        logger.debug(f"Found config at {path}")

        store = cls(path)
        store.load()
        return store

    def load(self) -> dict[str, Any]:
        """
        Read the configuration file.

        A missing file yields an empty configuration.

        Raises:
            ValueError: If the file is not a YAML mapping
        """
        if not self.config_file.exists():
            self._data = {}
            return self._data

        with open(self.config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {self.config_file} must contain a mapping")

        self._data = data
        return self._data

    def save(self) -> None:
        """Write the configuration back to disk."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w", encoding="utf-8") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    def _env_name(self, key: str) -> str:
        return self.ENV_PREFIX + key.replace(".", "_").replace("-", "_").upper()

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def is_set(self, key: str) -> bool:
        """Return True if key has a value in the environment or the file."""
        if self._env_name(key) in self._environ:
            return True
        return self._lookup(key) is not None

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for key, or default if unset."""
        env_name = self._env_name(key)
        if env_name in self._environ:
            return self._environ[env_name]

        value = self._lookup(key)
        return default if value is None else value

    def get_str(self, key: str) -> str:
        """Return the value for key as a string; empty if unset."""
        value = self.get(key)
        return "" if value is None else str(value)

    def require(self, key: str) -> Any:
        """
        Return the value for key.

        Raises:
            ConfigKeyError: If key is not set
        """
        if not self.is_set(key):
            raise ConfigKeyError(key)
        return self.get(key)

    def set(self, key: str, value: Any) -> None:
        """
        Set key to value and persist the file.

        Intermediate mappings are created as needed; a scalar in the way is
        replaced by a mapping.
        """
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

        self.save()
        logger.debug(f"Set {key} in {self.config_file}")
