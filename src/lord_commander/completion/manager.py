"""Completion operations exposed to the command layer.

These functions tie the pieces together: detection picks the shell, a
generator renders the script, the profile manager persists it, and the
status checker reads it back.

Recoverable file-system failures (permission problems, a malformed block
in the profile) come back as ``success=False`` results carrying an error
and a suggestion. :class:`~lord_commander.exceptions.PathSafetyError` and
:class:`~lord_commander.exceptions.UnsupportedShellError` always propagate:
they indicate a bad request, not a bad file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from lord_commander.completion import generators
from lord_commander.completion import status as status_checker
from lord_commander.completion.detect import ShellEnvironment
from lord_commander.completion.detect import detect_shell as _detect_shell
from lord_commander.completion.profile import ProfileManager, frame_script
from lord_commander.exceptions import FileSystemError, PathSafetyError
from lord_commander.models import (
    CommandDescriptor,
    InstallationScope,
    InstallationStatus,
    InstallResult,
    ShellKind,
    UninstallResult,
)

ShellArg = Union[ShellKind, str, None]


def detect_shell(
    override: Optional[str] = None,
    env: Optional[ShellEnvironment] = None,
) -> ShellKind:
    """Classify the invoking shell; see :func:`lord_commander.completion.detect.detect_shell`."""
    return _detect_shell(override, env)


def _resolve(shell: ShellArg, env: Optional[ShellEnvironment]) -> ShellKind:
    if isinstance(shell, ShellKind):
        return shell
    return _detect_shell(shell, env)


def generate_completion(tree: CommandDescriptor, shell: Union[ShellKind, str]) -> str:
    """Render the bare completion script for *tree*, registered as ``tree.name``."""
    return generators.generate(tree, shell)


def generate_completion_script(
    tree: CommandDescriptor,
    shell: Union[ShellKind, str],
    cli_name: Optional[str] = None,
) -> str:
    """Render the script framed by its versioned begin/end markers.

    The result is exactly the block :func:`install_completion` writes, so
    it can be appended to a profile by hand.
    """
    name = cli_name or tree.name
    kind = _resolve(shell, None)
    return frame_script(generators.generate(tree, kind, name), name, kind)


def install_completion(
    tree: CommandDescriptor,
    shell: ShellArg = None,
    scope: Union[InstallationScope, str] = InstallationScope.USER,
    force: bool = False,
    cli_name: Optional[str] = None,
    env: Optional[ShellEnvironment] = None,
    system_root: Optional[Path] = None,
) -> InstallResult:
    """Install the completion for *tree* into the shell's profile.

    Args:
        tree: Command tree to complete.
        shell: Target shell; detected when omitted.
        scope: ``user`` (home directory) or ``global`` (system directories).
        force: Replace an existing block instead of leaving it alone.
        cli_name: Executable name; defaults to ``tree.name``.
        env: Environment used for detection and the home directory.
        system_root: Base of system-wide directories.

    Returns:
        The :class:`InstallResult`. ``success`` is ``False`` when the
        profile could not be read or written.

    Raises:
        UnsupportedShellError: If *shell* names an unsupported shell.
        PathSafetyError: If the profile path escapes its sanctioned directory.
    """
    name = cli_name or tree.name
    kind = _resolve(shell, env)
    script = generators.generate(tree, kind, name)
    manager = ProfileManager(name, env=env, system_root=system_root)
    try:
        return manager.install(kind, InstallationScope(scope), script, force=force)
    except PathSafetyError:
        raise
    except FileSystemError as exc:
        return InstallResult(
            success=False, shell=kind, error=str(exc), suggestion=exc.suggestion
        )


def uninstall_completion(
    cli_name: str,
    shell: ShellArg = None,
    scope: Union[InstallationScope, str] = InstallationScope.USER,
    env: Optional[ShellEnvironment] = None,
    system_root: Optional[Path] = None,
) -> UninstallResult:
    """Remove the completion block for *cli_name*.

    Removing a completion that is not installed succeeds with
    ``removed=False``.

    Raises:
        UnsupportedShellError: If *shell* names an unsupported shell.
        PathSafetyError: If the profile path escapes its sanctioned directory.
    """
    kind = _resolve(shell, env)
    manager = ProfileManager(cli_name, env=env, system_root=system_root)
    try:
        return manager.uninstall(kind, InstallationScope(scope))
    except PathSafetyError:
        raise
    except FileSystemError as exc:
        return UninstallResult(
            success=False, shell=kind, error=str(exc), suggestion=exc.suggestion
        )


def check_completion_status(
    cli_name: str,
    shell: ShellArg = None,
    env: Optional[ShellEnvironment] = None,
    system_root: Optional[Path] = None,
) -> InstallationStatus:
    """Report where (and whether) the completion for *cli_name* is installed."""
    return status_checker.check_status(cli_name, shell, env=env, system_root=system_root)
