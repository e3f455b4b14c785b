"""
sprout error kinds.

Every failure raised by the scaffolding core is a ScaffoldError. The CLI maps
them to an exit code; nothing below the CLI retries or recovers.
"""

from typing import Optional


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""

    exit_code = 1

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class ValidationError(ScaffoldError):
    """Illegal project name, unsafe target path or bad invocation."""

    exit_code = 2


class ConfigurationError(ScaffoldError):
    """Language choice outside its set, missing tool root, bad policy file."""

    exit_code = 2


class ManifestFormatError(ScaffoldError):
    """Manifest lacks flutter.plugin.platforms or the insertion anchor."""

    exit_code = 2


class IOFailure(ScaffoldError):
    """Read or write failure propagated from the file system."""

    exit_code = 2


class ToolBusyError(ScaffoldError):
    """Another invocation holds the project lock."""
    pass
