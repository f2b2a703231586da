"""Version information for backup-guard."""

__version__ = "1.2.0"
