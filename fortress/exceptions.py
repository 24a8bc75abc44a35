"""
Fortress — Custom Exceptions.

Check and scoring paths never raise: they turn failures into results.
These exceptions cover the few fatal edges around them (config loading,
report persistence).
"""


class FortressError(Exception):
    """Base exception for all Fortress errors."""


class ConfigError(FortressError):
    """Raised when the project config file cannot be parsed or validated.

    This is the only fatal error at load time. The CLI turns it into a
    message telling the user how to fix or regenerate the file.
    """


class ReportError(FortressError):
    """Raised when a report snapshot cannot be written to disk."""
