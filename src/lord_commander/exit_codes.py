"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~lord_commander.exceptions.CommanderError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ mycli completion install --shell tcsh
    $ echo $?
    2   # EXIT_INVALID_USAGE -- unsupported shell
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. an unknown shell)."""

EXIT_STRUCTURAL_ERROR = 8
"""The registered command set has duplicate or malformed command names."""

EXIT_FILESYSTEM_ERROR = 9
"""A shell profile could not be read, written, or safely located."""
