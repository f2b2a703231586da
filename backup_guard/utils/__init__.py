"""
Guard utilities.

Modules:
- path_validator: Path traversal prevention for backup files (CWE-22)
- rate_limiter: Sliding window rate limiting (CWE-770)
- error_sanitizer: Error message sanitization (CWE-209)
- logging_config / audit_logger: Centralized and security audit logging
"""

from .error_sanitizer import ErrorCode, SanitizerConfig, log_and_sanitize, sanitize_error
from .path_validator import BACKUP_EXTENSION, resolve_lexical, validate_backup_path
from .rate_limiter import RateLimiter, RateLimiterRegistry, exchange_rate_limiter, get_rate_limiter_registry

__all__ = [
    # Path validation
    "BACKUP_EXTENSION",
    "resolve_lexical",
    "validate_backup_path",
    # Rate limiting
    "RateLimiter",
    "RateLimiterRegistry",
    "exchange_rate_limiter",
    "get_rate_limiter_registry",
    # Error sanitization
    "ErrorCode",
    "SanitizerConfig",
    "log_and_sanitize",
    "sanitize_error",
]
