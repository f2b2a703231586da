"""
Exceptions raised by the guard consumers.

The guards themselves (path validator, rate limiter, error sanitizer) signal
failure through return values. These exceptions are raised by the boundary
helpers that wrap them, and every one of them carries a stable, translatable
``code`` instead of a human sentence.
"""

from typing import Optional


class BackupGuardError(Exception):
    """Base exception for backup-guard errors."""

    code = "error.unexpected"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.code)


class SanitizedError(BackupGuardError):
    """
    Error whose message is already safe to show to an end user.

    Raised by ``safe_handle`` after the original exception went through the
    error sanitizer. The message is either a stable error code or a
    pass-through validation message.
    """

    def __init__(self, message: str, channel: Optional[str] = None) -> None:
        self.channel = channel
        super().__init__(message)

    @property
    def code(self) -> str:  # type: ignore[override]
        return str(self)


class InvalidBackupPathError(BackupGuardError):
    """Raised when a backup path fails validation. The reason is never exposed."""

    code = "error.backup.invalidPath"


class RateLimitExceededError(BackupGuardError):
    """Raised when a rate-limited operation is called too often."""

    code = "error.rateLimit.exceeded"

    def __init__(self, retry_after_ms: int, remaining: int = 0) -> None:
        self.retry_after_ms = retry_after_ms
        self.remaining = remaining
        super().__init__(self.code)


class ConfigError(BackupGuardError, ValueError):
    """Raised when the configuration file is missing sections or holds invalid values."""

    code = "error.config.invalid"

    def __init__(self, message: str) -> None:
        super().__init__(message)
