"""
Path Traversal Protection (CWE-22)

Validates that a backup file path supplied by a caller (restore dialog,
cloud download destination, generated export name) stays inside the
configured backup directory and points at a database file.

Resolution is purely lexical: ``.`` and ``..`` segments are collapsed
without touching the filesystem, so the check behaves the same for paths
that do not exist yet and never follows symlinks. Both ``/`` and ``\\`` are
accepted as separators on every platform.

References:
- OWASP ASVS 5.2.2
- CWE-22: https://cwe.mitre.org/data/definitions/22.html
"""

import logging
import os
import posixpath
from dataclasses import dataclass
from typing import Tuple, Union

from .audit_logger import log_security_event

logger = logging.getLogger(__name__)

BACKUP_EXTENSION = ".db"

PathInput = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class LexicalPath:
    """A path reduced to its simplest lexical form."""

    absolute: bool
    segments: Tuple[str, ...]

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ""

    @property
    def suffix(self) -> str:
        """Extension of the last segment, same rules as ``PurePath.suffix``."""
        return posixpath.splitext(self.name)[1]

    def folded(self) -> Tuple[str, ...]:
        return tuple(segment.casefold() for segment in self.segments)

    def is_within(self, base: "LexicalPath") -> bool:
        """
        Segment-wise, case-insensitive containment check.

        The path must have strictly more segments than ``base`` and its
        leading segments must equal the base segments one for one, so
        ``/backup`` never contains ``/backupEvil/x.db``.
        """
        if self.absolute != base.absolute:
            return False
        if len(self.segments) <= len(base.segments):
            return False

        depth = len(base.segments)
        if self.folded()[:depth] != base.folded():
            return False

        # Leading ".." only survive in relative paths; any left below the base escapes it
        return ".." not in self.segments[depth:]

    def __str__(self) -> str:
        joined = "/".join(self.segments)
        return f"/{joined}" if self.absolute else joined


def resolve_lexical(path: str) -> LexicalPath:
    """
    Collapse ``.`` and ``..`` segments and normalize separators.

    Args:
        path: Path using ``/`` or ``\\`` separators (may be mixed)

    Returns:
        LexicalPath with the resolved segments

    Examples:
        >>> str(resolve_lexical("/backup/sub/../../etc/x.db"))
        '/etc/x.db'
        >>> str(resolve_lexical("C:\\\\Users\\\\test\\\\backup\\\\file.db"))
        'C:/Users/test/backup/file.db'
    """
    normalized = path.replace("\\", "/")
    absolute = normalized.startswith("/")

    segments: list = []
    for part in normalized.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if segments and segments[-1] != "..":
                segments.pop()
            elif not absolute:
                segments.append(part)
            # ".." above an absolute root stays at the root
            continue
        segments.append(part)

    return LexicalPath(absolute=absolute, segments=tuple(segments))


def _as_text(value: object) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    try:
        text = os.fspath(value)
    except TypeError:
        return ""
    return text if isinstance(text, str) else ""


def _reject(event_type: str, reason: str, candidate: str) -> bool:
    logger.debug(f"Backup path rejected ({reason})")
    log_security_event(event_type, "warning", "Backup path rejected", reason=reason, candidate=candidate[:255])
    return False


def validate_backup_path(base_dir: PathInput, candidate_path: PathInput) -> bool:
    """
    Check that ``candidate_path`` is a ``.db`` file inside ``base_dir``.

    Rules, applied in order (any failure returns False):
    1. Neither path may be empty (or contain a null byte)
    2. Both paths are resolved lexically (``.``/``..`` collapsed, ``\\`` -> ``/``)
    3. The resolved candidate must sit below the resolved base directory,
       compared segment by segment and case-insensitively
    4. The resolved candidate's extension must be exactly ``.db``

    The reason for a rejection goes to the security audit log only; callers
    get a bare boolean and must surface a generic "invalid path" failure.
    This function never raises.

    Args:
        base_dir: Configured backup directory
        candidate_path: Path to validate (user supplied or generated)

    Returns:
        True if the path is safe to read, write or delete

    Examples:
        >>> validate_backup_path("/backup", "/backup/my-backup.db")
        True
        >>> validate_backup_path("/backup", "/backup/sub/../../etc/test.db")
        False
        >>> validate_backup_path("/Backup", "/backup/file.db")
        True
    """
    base_text = _as_text(base_dir)
    candidate_text = _as_text(candidate_path)

    if not base_text or not candidate_text:
        return _reject("invalid_backup_path", "empty path", candidate_text)

    if "\x00" in base_text or "\x00" in candidate_text:
        return _reject("invalid_backup_path", "null byte", candidate_text)

    base = resolve_lexical(base_text)
    candidate = resolve_lexical(candidate_text)

    if not candidate.is_within(base):
        return _reject("path_traversal_blocked", "escapes backup directory", candidate_text)

    if candidate.suffix != BACKUP_EXTENSION:
        return _reject("invalid_backup_extension", f"extension {candidate.suffix!r} not allowed", candidate_text)

    return True
