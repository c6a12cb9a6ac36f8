"""
Configuration management for columnml.

Settings are built in layers: built-in defaults, then environment
variables, then overrides passed by the caller (or read from a JSON/YAML
file). Values are addressed by dot-separated paths such as
'threading.min-size'.

The 'logging.level' key is never read by the library itself; it is kept
for host applications that configure logging from the same settings.
"""

import os
import json
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple
from copy import deepcopy
import yaml

# Set up logging
logger = logging.getLogger(__name__)


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        value = value.lower().strip()
        if value in ('true', 'yes', 'y', '1', 't'):
            return True
        if value in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


def to_level_name(value: Any) -> Optional[str]:
    """Normalize a log level name, or None if empty."""
    if not value:
        return None
    return str(value).strip().lower()


# Environment variable -> (config path, converter)
ENV_VARS: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    'COLUMNML_THREAD_LEVEL': ('threading.level', to_int),
    'COLUMNML_PARALLEL_MIN_SIZE': ('threading.min-size', to_int),
    'COLUMNML_SANITY_CHECKS': ('sanity-checks', to_bool),
    'LOG_LEVEL': ('logging.level', to_level_name),
}


def merge_dicts(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge updates into a copy of base.

    Nested dicts are merged key by key; any other value replaces the one
    in base.

    Args:
        base: Original mapping
        updates: Values to merge in

    Returns:
        New merged mapping
    """
    merged = deepcopy(base)

    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = deepcopy(value)

    return merged


def _lookup(config: Dict[str, Any], path: str) -> Tuple[bool, Any]:
    """Walk a dot path; returns (found, value)."""
    value = config
    for component in path.split('.'):
        if not isinstance(value, dict) or component not in value:
            return False, None
        value = value[component]
    return True, value


def _assign(config: Dict[str, Any], path: str, value: Any) -> None:
    """Set a dot path, creating intermediate sections."""
    *parents, leaf = path.split('.')
    section = config
    for component in parents:
        section = section.setdefault(component, {})
    section[leaf] = value


class Config:
    """
    Layered configuration for columnml.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config: Dict[str, Any] = {}
        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Rebuild the configuration from all layers.

        Args:
            overrides: Optional configuration overrides, applied last
        """
        with self._lock:
            config = self._apply_env_vars(self._get_defaults())

            if overrides:
                config = merge_dicts(config, overrides)

            self._config = config

        logger.info("Configuration loaded")

    @staticmethod
    def _get_defaults() -> Dict[str, Any]:
        return {
            'threading': {
                'level': 0,             # global thread level, 0 is sequential
                'min-level': 3,         # minimum level admitting the pool
                'min-size': 150000      # minimum column length per call site
            },

            # Size checks between columns that must be equal length
            'sanity-checks': True,

            # Read by host applications, not by columnml
            'logging': {
                'level': 'warn'
            }
        }

    @staticmethod
    def _apply_env_vars(config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Layer environment variables over a configuration.

        Unset or unparseable variables leave the current value.

        Args:
            config: Current configuration

        Returns:
            Updated copy of the configuration
        """
        config = deepcopy(config)

        for name, (path, convert) in ENV_VARS.items():
            value = convert(os.environ.get(name))
            if value is None:
                if name in os.environ:
                    logger.warning(f"Ignoring invalid value for {name}: {os.environ[name]!r}")
                continue
            _assign(config, path, value)

        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        with self._lock:
            found, value = _lookup(self._config, path)
        return value if found else default

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            _assign(self._config, path, value)

    def to_dict(self) -> Dict[str, Any]:
        """Detached copy of the whole configuration."""
        with self._lock:
            return deepcopy(self._config)

    def load_from_file(self, filepath: str) -> None:
        """
        Reload the configuration with overrides read from a file.

        Args:
            filepath: Path to a .json, .yaml or .yml file

        Raises:
            ValueError: If the extension is not supported
        """
        if filepath.endswith('.json'):
            loader = json.load
        elif filepath.endswith(('.yaml', '.yml')):
            loader = yaml.safe_load
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

        with open(filepath, 'r') as f:
            overrides = loader(f) or {}

        self.load_config(overrides)


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional overrides; reloads an existing instance

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the configuration instance so the next call reloads it."""
        with cls._lock:
            cls._instance = None
