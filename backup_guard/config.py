"""
Configuration management for backup-guard.

Settings come from a YAML file (``backup_guard.yaml`` at the project root by
default) merged over built-in defaults. A missing default file is not an
error; an explicitly requested file that does not exist is.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError
from .utils.error_sanitizer import SanitizerConfig
from .utils.logging_config import VALID_FORMATS, VALID_LEVELS
from .utils.rate_limiter import RateLimiter

DEFAULT_CONFIG_FILENAME = "backup_guard.yaml"

DEFAULTS: Dict[str, Any] = {
    "backup": {
        "directory": "~/.backup-guard/backups",
    },
    "rate_limits": {
        "default": {"max_requests": 10, "window_ms": 60000},
        "exchange_rate": {"max_requests": 5, "window_ms": 60000},
    },
    "sanitizer": {
        "max_message_length": 200,
        "safe_prefixes": [],
    },
    "logging": {
        "level": "INFO",
        "dir": "logs",
        "format": "standard",
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class Config:
    """Configuration manager for the guard layer."""

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Load configuration.

        Args:
            config_path: Path to a YAML configuration file. If None, looks for
                         backup_guard.yaml at the project root and falls back
                         to the defaults when it is absent.

        Raises:
            ConfigError: If the file is missing (explicit path), malformed or invalid
        """
        self.explicit = config_path is not None
        if config_path is None:
            project_root = Path(__file__).parent.parent
            config_path = project_root / DEFAULT_CONFIG_FILENAME

        self.config_path = Path(config_path)
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load the YAML file and merge it over the defaults."""
        if not self.config_path.exists():
            if self.explicit:
                raise ConfigError(f"Configuration file not found: {self.config_path}")
            config = copy.deepcopy(DEFAULTS)
        else:
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML syntax in {self.config_path}: {e}")
            except OSError as e:
                raise ConfigError(f"Could not read {self.config_path}: {e}")

            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ConfigError(f"{self.config_path} must contain a mapping at the top level")

            config = _merge(DEFAULTS, loaded)

        self._validate_config(config)
        self._expand_paths(config)
        return config

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate the structure of the configuration.

        Raises:
            ConfigError: If a section or value is invalid
        """
        for section in DEFAULTS:
            if not isinstance(config.get(section), dict):
                raise ConfigError(f"Section '{section}' must be a mapping")

        directory = config["backup"].get("directory")
        if not isinstance(directory, str) or not directory:
            raise ConfigError("Field 'backup.directory' must be a non-empty string")

        for name, limits in config["rate_limits"].items():
            if not isinstance(limits, dict):
                raise ConfigError(f"Rate limit '{name}' must be a mapping")
            for key in ("max_requests", "window_ms"):
                if not _is_positive_int(limits.get(key)):
                    raise ConfigError(
                        f"Rate limit '{name}.{key}' must be a positive integer, got: {limits.get(key)!r}"
                    )

        sanitizer = config["sanitizer"]
        if not _is_positive_int(sanitizer.get("max_message_length")):
            raise ConfigError("Field 'sanitizer.max_message_length' must be a positive integer")

        prefixes = sanitizer.get("safe_prefixes")
        if not isinstance(prefixes, list) or not all(isinstance(p, str) and p for p in prefixes):
            raise ConfigError("Field 'sanitizer.safe_prefixes' must be a list of non-empty strings")

        logging_section = config["logging"]
        level = logging_section.get("level")
        if not isinstance(level, str) or level.upper() not in VALID_LEVELS:
            raise ConfigError(f"Field 'logging.level' must be one of {VALID_LEVELS}, got: {level!r}")
        if logging_section.get("format") not in VALID_FORMATS:
            raise ConfigError(f"Field 'logging.format' must be one of {VALID_FORMATS}")
        if not isinstance(logging_section.get("dir"), str):
            raise ConfigError("Field 'logging.dir' must be a string")

    def _expand_paths(self, config: Dict[str, Any]) -> None:
        """Expand ~ and environment variables in the backup directory (in place)."""
        directory = config["backup"]["directory"]
        config["backup"]["directory"] = os.path.expanduser(os.path.expandvars(directory))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value by dotted path.

        Args:
            key_path: Dotted key (e.g. "rate_limits.default.window_ms")
            default: Value returned when the key does not exist
        """
        value = self.config

        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    @property
    def backup_directory(self) -> str:
        return self.config["backup"]["directory"]

    @property
    def rate_limits(self) -> Dict[str, Dict[str, int]]:
        return self.config["rate_limits"]

    @property
    def logging_config(self) -> Dict[str, Any]:
        return self.config["logging"]

    def make_rate_limiter(self, name: str = "default") -> RateLimiter:
        """
        Build a RateLimiter from the named ``rate_limits`` entry.

        Raises:
            KeyError: If no rate limit with that name is configured
        """
        if name not in self.rate_limits:
            raise KeyError(f"No rate limit named '{name}' (configured: {', '.join(self.rate_limits)})")
        limits = self.rate_limits[name]
        return RateLimiter(max_requests=limits["max_requests"], window_ms=limits["window_ms"])

    def sanitizer_config(self) -> SanitizerConfig:
        """Build the SanitizerConfig described by the ``sanitizer`` section."""
        section = self.config["sanitizer"]
        return SanitizerConfig.default(
            max_message_length=section["max_message_length"],
            safe_prefixes=tuple(section["safe_prefixes"]),
        )


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Create and return a configuration instance.

    Raises:
        ConfigError: If the configuration file is missing or invalid
    """
    return Config(config_path)
