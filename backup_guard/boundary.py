"""
Guarded call helpers for the layers that consume the guards.

- ``safe_handle``: error-translation boundary. Raw exceptions never cross it,
  only sanitized codes or safe messages do.
- ``rate_limited``: rejects calls once a limiter's window is full.
- ``require_backup_path``: raising variant of ``validate_backup_path`` for
  backup/export services.
"""

import functools
import inspect
import logging
import os
from typing import Any, Callable, Optional, TypeVar

from .exceptions import InvalidBackupPathError, RateLimitExceededError, SanitizedError
from .utils.error_sanitizer import SanitizerConfig, extract_message, sanitize_error
from .utils.path_validator import PathInput, validate_backup_path
from .utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _translate(error: Exception, channel: str, config: Optional[SanitizerConfig]) -> SanitizedError:
    sanitized = sanitize_error(error, config)
    try:
        original = extract_message(error)
    except Exception:
        original = "<unprintable error>"

    if original != sanitized:
        logger.error(f"[{channel}] {original}", exc_info=error)

    return SanitizedError(sanitized, channel=channel)


def safe_handle(channel: str, config: Optional[SanitizerConfig] = None) -> Callable[[F], F]:
    """
    Decorate a handler so that every exception it raises is sanitized.

    The original error is logged (once, at ERROR) only when sanitization
    changed it; the caller receives a ``SanitizedError`` whose message is the
    sanitized text and which does not chain the original exception.
    Coroutine functions are awaited inside the same translation.

    Args:
        channel: Name of the operation, used in log lines
        config: Sanitizer configuration (uses defaults if None)

    Usage:
        @safe_handle("backup:restore")
        def restore_backup(path):
            ...
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except SanitizedError:
                    raise
                except Exception as error:
                    raise _translate(error, channel, config) from None

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SanitizedError:
                raise
            except Exception as error:
                raise _translate(error, channel, config) from None

        return wrapper  # type: ignore[return-value]

    return decorator


def rate_limited(limiter: RateLimiter) -> Callable[[F], F]:
    """
    Reject calls once ``limiter`` has no requests left in its window.

    Raises:
        RateLimitExceededError: With ``retry_after_ms`` and ``remaining`` hints
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not limiter.can_make_request():
                raise RateLimitExceededError(
                    retry_after_ms=limiter.get_reset_time(),
                    remaining=limiter.get_remaining_requests(),
                )
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def require_backup_path(base_dir: PathInput, candidate_path: PathInput) -> str:
    """
    Validate a backup path before any write or delete.

    Returns:
        The candidate path unchanged, if valid

    Raises:
        InvalidBackupPathError: Generic failure; the reason is not exposed
    """
    if not validate_backup_path(base_dir, candidate_path):
        raise InvalidBackupPathError()
    return os.fspath(candidate_path)
