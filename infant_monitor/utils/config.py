"""
Configuration management for the Infant Health Monitor.

Configuration is a YAML file layered over ``DEFAULT_CONFIG``. String values
may reference environment variables as ``${VAR_NAME}``; the CLI loads a
local ``.env`` first, so nursery-specific values can live there.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from infant_monitor.utils.errors import ConfigurationError

CONFIG_ENV_VAR = "INFANT_MONITOR_CONFIG"

DEFAULT_CONFIG: Dict[str, Any] = {
    "audio": {
        "supported_formats": [".wav", ".flac", ".ogg", ".aiff", ".aif", ".mp3"],
        "max_file_size": 104857600,  # 100MB
        "target_sample_rate": None,  # keep the file's native rate
    },
    "extraction": {
        "mode": "placeholder",
        "n_coefficients": 13,
        "pitch_min_hz": 60.0,
        "pitch_max_hz": 400.0,
        "zcr_normalization": "legacy",
        "n_mels": 40,
    },
    "classifier": {
        "variance_max": 1.5,
        "zcr_max": 8.0,
        "pitch_min_hz": 200.0,
        "pitch_max_hz": 600.0,
        "random_seed": None,
    },
    "monitor": {
        "history_length": 10,
        "interval_ms": 3000,
        "window_seconds": 3.0,
    },
    "logging": {
        "level": "INFO",
        "format": "text",
        "file": None,
    },
}

_ENV_REFERENCE = re.compile(r'\$\{([^}]+)\}')

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    A parsed YAML configuration.

    - ``${VAR}`` references are resolved on load; unset variables are left
      as written
    - values are read with dot notation (``monitor.interval_ms``)
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Parse a YAML file and resolve environment references.

        Raises:
            ConfigurationError: If the file is missing, unparsable, or its
                top level is not a mapping
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration {file_path}: {e}",
                config_key=str(file_path)
            ) from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Top level of {file_path} must be a mapping, got {type(loaded).__name__}",
                config_key=str(file_path)
            )
        return cls(resolve_env(loaded))

    def get(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Look up a dotted key.

        Raises:
            ConfigurationError: If ``required`` and the key is absent
        """
        node: Any = self._config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default
            node = node[part]
        return node

    def get_section(self, key: str) -> Dict[str, Any]:
        """A mapping-valued key, or an empty dict if absent or not a mapping."""
        value = self.get(key)
        return value if isinstance(value, dict) else {}

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)


def resolve_env(value: Any) -> Any:
    """Recursively substitute ``${VAR}`` references in strings."""
    if isinstance(value, dict):
        return {k: resolve_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_env(item) for item in value]
    if not isinstance(value, str):
        return value

    substituted = _ENV_REFERENCE.sub(
        lambda m: os.environ.get(m.group(1), m.group(0)), value
    )
    if substituted == value:
        return value
    # Re-read as a YAML scalar so "${MONITOR_INTERVAL_MS}" yields an int
    try:
        return yaml.safe_load(substituted)
    except yaml.YAMLError:
        return substituted


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def candidate_paths() -> List[Path]:
    """Where ``load_config`` looks when no path is given, in order."""
    paths = []
    if os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(os.environ[CONFIG_ENV_VAR]))
    paths.extend([
        Path("config/config.yaml"),
        Path("config.yaml"),
        Path(__file__).resolve().parent.parent.parent / "config" / "config.yaml",
    ])
    return paths


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration layered over the defaults.

    Args:
        config_path: Explicit file. If None, the first existing entry of
            ``candidate_paths()`` is used, or the defaults alone.

    Raises:
        ConfigurationError: If an explicitly given file is missing or invalid
    """
    if config_path is None:
        config_path = next((str(p) for p in candidate_paths() if p.exists()), None)
        if config_path is None:
            logger.debug("No configuration file found; using defaults")
            return get_default_config()

    overrides = ConfigManager.from_file(Path(config_path)).to_dict()
    unknown = sorted(set(overrides) - set(DEFAULT_CONFIG))
    if unknown:
        logger.warning(f"Unknown configuration sections (unused): {', '.join(unknown)}")
    logger.debug(f"Loaded configuration from {config_path}")
    return merge_config(DEFAULT_CONFIG, overrides)


def get_default_config() -> Dict[str, Any]:
    """Return a fresh copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)
