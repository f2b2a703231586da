"""
backup-guard: security guards for a backup/restore subsystem.

- validate_backup_path: keeps backup files inside the backup directory
- RateLimiter: sliding window limit for expensive operations
- sanitize_error: turns raw errors into safe, translatable codes
"""

from .__version__ import __version__
from .boundary import rate_limited, require_backup_path, safe_handle
from .exceptions import (
    BackupGuardError,
    ConfigError,
    InvalidBackupPathError,
    RateLimitExceededError,
    SanitizedError,
)
from .utils import (
    ErrorCode,
    RateLimiter,
    RateLimiterRegistry,
    SanitizerConfig,
    exchange_rate_limiter,
    sanitize_error,
    validate_backup_path,
)

__all__ = [
    "__version__",
    "validate_backup_path",
    "RateLimiter",
    "RateLimiterRegistry",
    "exchange_rate_limiter",
    "sanitize_error",
    "ErrorCode",
    "SanitizerConfig",
    "safe_handle",
    "rate_limited",
    "require_backup_path",
    "BackupGuardError",
    "ConfigError",
    "InvalidBackupPathError",
    "RateLimitExceededError",
    "SanitizedError",
]
