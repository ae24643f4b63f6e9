"""
CommitGuard Errors

Exceptions that abort a scan or a configuration load. Everything else
(unreadable files, broken manifests, advisory outages) degrades to fewer
findings and is only logged.
"""


class CommitGuardError(Exception):
    """Base class for all CommitGuard errors."""


class ConfigError(CommitGuardError):
    """Configuration could not be read or contains an invalid value."""


class ScanError(CommitGuardError):
    """The scan root could not be accessed."""
