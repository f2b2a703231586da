"""
Security audit logger.

Writes security-relevant guard decisions (blocked paths, rate limit
rejections, sanitized errors) to the audit log configured by
logging_config.py. Messages are structured as ``key='value'`` pairs so they
can be grepped or shipped to a SIEM without a JSON formatter.
"""

import logging
import re

AUDIT_LOGGER_PREFIX = "backup_guard.utils.audit_logger"


def get_audit_logger(name: str = "audit") -> logging.Logger:
    """
    Get logger for security audit events.

    Args:
        name: Logger name suffix (default: "audit")

    Returns:
        Logger routed to security_audit.log when audit logging is enabled
    """
    return logging.getLogger(f"{AUDIT_LOGGER_PREFIX}.{name}")


_audit_logger = get_audit_logger()

SEVERITY_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
}

# Control characters would let a caller-supplied value forge extra audit lines (CWE-117)
_UNSAFE_CHARS = re.compile(r"[\x00-\x1f\x7f'\\]")


def _quote(value: object) -> str:
    """Render a value as a single-line, quote-safe audit field."""

    def escape(match: "re.Match[str]") -> str:
        char = match.group()
        if char in "'\\":
            return "\\" + char
        return f"\\x{ord(char):02x}"

    return "'" + _UNSAFE_CHARS.sub(escape, str(value)) + "'"


def format_security_event(event_type: str, severity: str, message: str, **details) -> str:
    """Build the structured audit line for an event, one event per line."""
    log_parts = [f"event_type={_quote(event_type)}", f"severity={_quote(severity)}", f"message={_quote(message)}"]

    if details:
        details_str = " | ".join([f"{k}={_quote(v)}" for k, v in details.items()])
        log_parts.append(f"details={{{details_str}}}")

    return " | ".join(log_parts)


def log_security_event(event_type: str, severity: str, message: str, **details) -> None:
    """
    Log a security-relevant event to the audit log.

    Args:
        event_type: Type of security event (e.g. "path_traversal_blocked")
        severity: Severity level (info, warning, error, critical)
        message: Human-readable message
        **details: Additional structured data
    """
    level = SEVERITY_LEVELS.get(severity, logging.INFO)
    _audit_logger.log(level, format_security_event(event_type, severity, message, **details))
