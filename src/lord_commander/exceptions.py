"""Exception hierarchy for lord_commander.

All exceptions inherit from :class:`CommanderError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`lord_commander.exit_codes` and an optional ``suggestion`` that the
command boundary prints as a next step below the error line.

Subclass hierarchy::

    CommanderError            (exit 1)
    +-- UnsupportedShellError (exit 2)
    +-- StructuralError       (exit 8)
    +-- FileSystemError       (exit 9)
    |   +-- PathSafetyError   (exit 9)
    |   +-- ProfileFormatError(exit 9)
    +-- ConfigError           (exit 1)
"""

from __future__ import annotations

from typing import Iterable, Optional

from lord_commander.exit_codes import (
    EXIT_FILESYSTEM_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STRUCTURAL_ERROR,
)


class CommanderError(Exception):
    """Base exception for all lord_commander errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
        suggestion: Optional next step shown to the user.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    suggestion: Optional[str] = None

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        suggestion: str | None = None,
    ):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code
        if suggestion is not None:
            self.suggestion = suggestion


class StructuralError(CommanderError):
    """Raised when two commands claim the same name in the tree or registry."""

    exit_code = EXIT_STRUCTURAL_ERROR


class FileSystemError(CommanderError):
    """Raised when a profile file cannot be read or written."""

    exit_code = EXIT_FILESYSTEM_ERROR
    suggestion = (
        "Check the file permissions, or re-run with elevated privileges "
        "for a --global installation."
    )


class PathSafetyError(FileSystemError):
    """Raised when a resolved profile path escapes its sanctioned directory."""

    suggestion = None


class ProfileFormatError(FileSystemError):
    """Raised when a profile holds a malformed completion marker block."""

    suggestion = "Remove the partial completion block from the file by hand."


class UnsupportedShellError(CommanderError):
    """Raised when an explicit shell name is not one of the supported shells."""

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, shell: str, supported: Iterable[str]):
        self.shell = shell
        self.supported = tuple(supported)
        super().__init__(
            f"Unsupported shell: {shell}. Supported: {', '.join(self.supported)}",
            suggestion="Pass one of the supported shells with --shell.",
        )


class ConfigError(CommanderError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE
