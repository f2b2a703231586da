"""
Error Message Sanitization Utility

Security-compliant error handling that prevents information disclosure.

Implements:
- CWE-209: Information Exposure Through Error Messages
- OWASP ASVS Chapter 7: Error Handling and Logging

Every error caught at a user-facing boundary is reduced to either:
1. A stable, translatable error code (``error.db.uniqueConstraint``, ...)
2. The original message, when it carries no sign of internal detail

Classification rules are evaluated in order and the first match wins.
Anything that still looks technical (too long, or containing brackets,
braces or parentheses) collapses to ``error.unexpected``.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple


class ErrorCode:
    """Closed set of error codes produced by the sanitizer and the boundary."""

    UNIQUE_CONSTRAINT = "error.db.uniqueConstraint"
    FOREIGN_KEY_CONSTRAINT = "error.db.foreignKeyConstraint"
    NOT_NULL_CONSTRAINT = "error.db.notNullConstraint"
    CHECK_CONSTRAINT = "error.db.checkConstraint"
    SCHEMA_ERROR = "error.db.schemaError"
    SYSTEM_ERROR = "error.db.systemError"
    GENERIC_DB_ERROR = "error.db.genericDbError"
    DATABASE_LOCKED = "error.db.databaseLocked"
    DISK_IO_ERROR = "error.db.diskIOError"
    DATABASE_CORRUPTED = "error.db.databaseCorrupted"
    UNEXPECTED = "error.unexpected"
    INVALID_BACKUP_PATH = "error.backup.invalidPath"
    RATE_LIMIT_EXCEEDED = "error.rateLimit.exceeded"


# Ordered: specific leaks first, raw SQL fragments after the schema messages
# that also contain SQL words ("no such table")
DEFAULT_RULES: Tuple[Tuple[str, str], ...] = (
    (r"UNIQUE constraint", ErrorCode.UNIQUE_CONSTRAINT),
    (r"FOREIGN KEY constraint", ErrorCode.FOREIGN_KEY_CONSTRAINT),
    (r"NOT NULL constraint", ErrorCode.NOT_NULL_CONSTRAINT),
    (r"CHECK constraint failed", ErrorCode.CHECK_CONSTRAINT),
    (r"no such (?:table|column)", ErrorCode.SCHEMA_ERROR),
    (r"syntax error", ErrorCode.SYSTEM_ERROR),
    (r"\b(?:SELECT|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP|TABLE|COLUMN|INDEX)\b", ErrorCode.GENERIC_DB_ERROR),
    (r"database is locked", ErrorCode.DATABASE_LOCKED),
    (r"disk I/O error", ErrorCode.DISK_IO_ERROR),
    (r"database disk image is malformed", ErrorCode.DATABASE_CORRUPTED),
)

DEFAULT_MAX_MESSAGE_LENGTH = 200

# Brackets, braces and parentheses hint at serialized or structured detail
STRUCTURE_PATTERN = re.compile(r"[{}\[\]()]")


@dataclass(frozen=True)
class ErrorRule:
    """Maps a message pattern to a safe error code."""

    pattern: Pattern[str]
    code: str

    @classmethod
    def compile(cls, pattern: str, code: str) -> "ErrorRule":
        return cls(re.compile(pattern, re.IGNORECASE), code)

    def matches(self, message: str) -> bool:
        return self.pattern.search(message) is not None


@dataclass
class SanitizerConfig:
    """Configuration for error sanitization."""

    rules: List[ErrorRule] = field(default_factory=list)
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH
    # Prefixes of the application's own validation messages, passed through untouched
    safe_prefixes: Tuple[str, ...] = ()

    @classmethod
    def default(cls, max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
                safe_prefixes: Tuple[str, ...] = ()) -> "SanitizerConfig":
        """Default rule set for SQLite-backed storage."""
        return cls(
            rules=[ErrorRule.compile(pattern, code) for pattern, code in DEFAULT_RULES],
            max_message_length=max_message_length,
            safe_prefixes=tuple(safe_prefixes),
        )


_DEFAULT_CONFIG = SanitizerConfig.default()

logger = logging.getLogger(__name__)


def extract_message(error: BaseException) -> str:
    """Message text of an exception, preferring an explicit ``message`` attribute."""
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    return str(error)


def classify_message(message: str, config: Optional[SanitizerConfig] = None) -> Optional[str]:
    """
    Return the error code of the first matching rule.

    Args:
        message: Raw error message
        config: Sanitizer configuration (uses defaults if None)

    Returns:
        Error code, or None if no rule matched
    """
    if config is None:
        config = _DEFAULT_CONFIG

    for rule in config.rules:
        if rule.matches(message):
            return rule.code
    return None


def looks_technical(message: str, max_length: int = DEFAULT_MAX_MESSAGE_LENGTH) -> bool:
    """True if the message is too long or contains structure characters."""
    return len(message) >= max_length or STRUCTURE_PATTERN.search(message) is not None


def sanitize_error(error: object, config: Optional[SanitizerConfig] = None) -> str:
    """
    Convert any caught value to a string that is safe to show to a user.

    - Values that are not exceptions are returned as their plain string form
    - Known database/SQL errors map to stable ``error.db.*`` codes
    - Long or bracket-laden messages become ``error.unexpected``
    - Short, plain messages pass through unchanged

    This function never raises.

    Args:
        error: Caught exception, or any other thrown value
        config: Sanitizer configuration (uses defaults if None)

    Returns:
        Error code or safe message

    Examples:
        >>> sanitize_error(Exception("UNIQUE constraint failed: companies.name"))
        'error.db.uniqueConstraint'
        >>> sanitize_error(42)
        '42'
        >>> sanitize_error(ValueError("Invalid ID"))
        'Invalid ID'
    """
    if config is None:
        config = _DEFAULT_CONFIG

    try:
        if not isinstance(error, BaseException):
            return str(error)

        message = extract_message(error)

        if config.safe_prefixes and message.startswith(config.safe_prefixes):
            return message

        code = classify_message(message, config)
        if code is not None:
            return code

        if looks_technical(message, config.max_message_length):
            return ErrorCode.UNEXPECTED

        return message
    except Exception:
        # str() on a hostile object can raise; the output must stay displayable
        logger.error("Error sanitization failed", exc_info=True)
        return ErrorCode.UNEXPECTED


def log_and_sanitize(
    error: BaseException,
    logger_instance: logging.Logger,
    context: str,
    config: Optional[SanitizerConfig] = None,
) -> str:
    """
    Combined logging and sanitization helper.

    1. Log full details (with stack trace)
    2. Return sanitized message for user display

    Args:
        error: The exception that occurred
        logger_instance: Logger to use for detailed logging
        context: Context description (e.g., "Backup restore")
        config: Sanitizer configuration (uses defaults if None)

    Returns:
        Sanitized message safe for user display

    Usage:
        try:
            restore(path)
        except Exception as e:
            msg = log_and_sanitize(e, logger, "Backup restore")
            console.print(f"[red]{msg}[/red]")
    """
    logger_instance.error(f"{context} failed: {error}", exc_info=error)
    return sanitize_error(error, config)
