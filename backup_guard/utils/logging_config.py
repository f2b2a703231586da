"""
Centralized logging configuration module.

Security Features:
- Log rotation to prevent disk exhaustion (CWE-770)
- Separate audit log for guard decisions (blocked paths, rate limits)
- Optional JSON output for SIEM ingestion (python-json-logger)
- Log files created with 0600 permissions (owner read/write only)
"""

import logging
import logging.config
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .audit_logger import AUDIT_LOGGER_PREFIX

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_FORMATS = ["standard", "json"]

LOG_FILENAME = "backup_guard.log"
AUDIT_FILENAME = "security_audit.log"

# Loggers whose records also belong in the audit file
SECURITY_LOGGERS = [
    AUDIT_LOGGER_PREFIX,
    "backup_guard.utils.path_validator",
    "backup_guard.utils.rate_limiter",
    "backup_guard.utils.error_sanitizer",
    "backup_guard.boundary",
]


class SecureRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Rotating file handler with secure file permissions.

    Sets file permissions to 0600 (owner read/write only) since logs may hold
    the raw error text the sanitizer kept away from users.
    """

    def _open(self):
        stream = super()._open()

        try:
            os.chmod(self.baseFilename, 0o600)
        except OSError as e:
            logging.warning(f"Could not set secure permissions on {self.baseFilename}: {e}")

        return stream


def _validate_log_level(log_level: str) -> str:
    """
    Validate and normalize log level.

    Raises:
        ValueError: If log level is invalid
    """
    log_level = log_level.upper()

    if log_level not in VALID_LEVELS:
        raise ValueError(f"Invalid log level: {log_level}. Must be one of {VALID_LEVELS}")

    return log_level


def _create_log_directory(log_dir: str) -> Path:
    """Create log directory with 0700 permissions."""
    log_path = Path(log_dir).resolve()
    log_path.mkdir(parents=True, exist_ok=True)

    try:
        os.chmod(log_path, 0o700)
    except OSError as e:
        logging.warning(f"Could not set secure permissions on {log_path}: {e}")

    return log_path


def build_logging_config(
    log_dir: str = "logs",
    log_level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    enable_audit: bool = True,
    log_format: str = "standard",
) -> Dict[str, Any]:
    """
    Build the ``logging.config.dictConfig`` dictionary.

    Does not touch the filesystem; ``setup_logging`` creates the directory.

    Raises:
        ValueError: If log level or format is invalid
    """
    log_level = _validate_log_level(log_level)
    if log_format not in VALID_FORMATS:
        raise ValueError(f"Invalid log format: {log_format}. Must be one of {VALID_FORMATS}")

    log_path = Path(log_dir).resolve()

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "audit": {
                "format": "%(asctime)s [SECURITY] %(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": {},
        "loggers": {},
        "root": {
            "level": log_level,
            "handlers": [],
        },
    }

    if enable_console:
        config["handlers"]["console"] = {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": log_format,
            "stream": "ext://sys.stderr",
        }
        config["root"]["handlers"].append("console")

    if enable_file:
        config["handlers"]["file"] = {
            "()": SecureRotatingFileHandler,
            "level": log_level,
            "formatter": log_format,
            "filename": str(log_path / LOG_FILENAME),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8",
        }
        config["root"]["handlers"].append("file")

    if enable_audit:
        config["handlers"]["audit_file"] = {
            "()": SecureRotatingFileHandler,
            "level": "INFO",
            "formatter": "json" if log_format == "json" else "audit",
            "filename": str(log_path / AUDIT_FILENAME),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 10,
            "encoding": "utf8",
        }

        # Audit records go to the audit file and still reach the root handlers
        for logger_name in SECURITY_LOGGERS:
            config["loggers"][logger_name] = {
                "level": log_level,
                "handlers": ["audit_file"],
                "propagate": True,
            }

    return config


def setup_logging(
    log_dir: str = "logs",
    log_level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    enable_audit: bool = True,
    log_format: str = "standard",
    config_file: Optional[str] = None,
) -> None:
    """
    Setup centralized logging configuration.

    Args:
        log_dir: Directory for log files (default: "logs")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable console (stderr) logging
        enable_file: Enable file logging with rotation
        enable_audit: Enable separate audit log for security events
        log_format: Log format ("standard" or "json")
        config_file: Optional path to YAML config file (overrides other params)

    Raises:
        ValueError: If configuration is invalid
        OSError: If log directory creation fails

    Security Notes:
        - DEBUG level logs the reason of every path rejection
        - Raw (unsanitized) error text is only ever written to log files
    """
    if config_file and os.path.exists(config_file):
        _setup_logging_from_file(config_file, log_dir)
        return

    config = build_logging_config(
        log_dir=log_dir,
        log_level=log_level,
        enable_console=enable_console,
        enable_file=enable_file,
        enable_audit=enable_audit,
        log_format=log_format,
    )

    if config["root"]["level"] == "DEBUG":
        print(
            "WARNING: DEBUG logging enabled. Rejection reasons and raw errors will be logged.",
            file=sys.stderr,
        )

    if enable_file or enable_audit:
        log_path = _create_log_directory(log_dir)
    else:
        log_path = Path(log_dir).resolve()

    logging.config.dictConfig(config)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: level={config['root']['level']}, console={enable_console}, "
                f"file={enable_file}, audit={enable_audit}, format={log_format}")
    logger.info(f"Log directory: {log_path}")


def _setup_logging_from_file(config_file: str, log_dir: str) -> None:
    """
    Setup logging from YAML configuration file.

    Relative handler filenames are placed under ``log_dir`` and plain
    RotatingFileHandlers are swapped for the secure variant.

    Raises:
        ValueError: If configuration file is invalid
        OSError: If configuration file cannot be read
    """
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in logging configuration: {e}")
    except OSError as e:
        raise OSError(f"Failed to load logging configuration from {config_file}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Logging configuration {config_file} must be a mapping")

    log_path = _create_log_directory(log_dir)

    for handler_config in config.get("handlers", {}).values():
        if "filename" in handler_config:
            filename = handler_config["filename"]
            if not os.path.isabs(filename):
                if filename.startswith("logs/"):
                    filename = filename[len("logs/"):]
                handler_config["filename"] = str(log_path / filename)

        if handler_config.get("class") == "logging.handlers.RotatingFileHandler":
            handler_config["()"] = SecureRotatingFileHandler
            del handler_config["class"]

    logging.config.dictConfig(config)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized from config file: {config_file}")
    logger.info(f"Log directory: {log_path}")


def shutdown_logging() -> None:
    """Flush and close all handlers before exit."""
    logging.shutdown()
