"""Profile location and idempotent marker-block editing.

A completion is persisted as a marker-delimited block::

    # BEGIN mycli bash completion v1
    ...generated script...
    # END mycli bash completion

either appended to the shell's run-control file (``~/.bashrc``,
``~/.zshrc``, the PowerShell profile) or written as a standalone file in a
completion directory (fish completions, ``bash_completion.d``, zsh
``site-functions``). The ``v<N>`` suffix records the script format version
so a later install can recognise and replace an older block.

The block editing functions (:func:`find_blocks`, :func:`insert_block`,
:func:`remove_block`) are pure string transformations; :class:`ProfileManager`
wraps them with path resolution, the path-safety check, and atomic writes.

Edits work on ``\\n``-separated lines and keep every other line untouched,
including any ``\\r`` line endings.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional, Sequence, Union

from lord_commander import fs
from lord_commander.completion.detect import ShellEnvironment
from lord_commander.completion.generators.base import COMPLETION_FORMAT_VERSION
from lord_commander.exceptions import PathSafetyError, ProfileFormatError
from lord_commander.models import (
    InstallationScope,
    InstallationType,
    InstallResult,
    ShellKind,
    UninstallResult,
)

logger = logging.getLogger(__name__)

# Leading script lines that must stay on the first line of a standalone file.
_HOISTED_PREFIXES = ("#compdef", "#!")


# --- Markers ---


def begin_marker(
    cli_name: str,
    shell: Union[ShellKind, str],
    version: int = COMPLETION_FORMAT_VERSION,
) -> str:
    return f"# BEGIN {cli_name} {ShellKind(shell).value} completion v{version}"


def end_marker(cli_name: str, shell: Union[ShellKind, str]) -> str:
    return f"# END {cli_name} {ShellKind(shell).value} completion"


def _begin_pattern(cli_name: str, shell: ShellKind) -> re.Pattern[str]:
    return re.compile(
        rf"# BEGIN {re.escape(cli_name)} {re.escape(shell.value)} completion v(\d+)"
    )


def frame_script(script: str, cli_name: str, shell: Union[ShellKind, str]) -> str:
    """Wrap a generated script in its begin/end markers.

    Example::

        >>> frame_script("complete -F _f mycli\\n", "mycli", "bash")
        '# BEGIN mycli bash completion v1\\ncomplete -F _f mycli\\n# END mycli bash completion\\n'
    """
    lines = [begin_marker(cli_name, shell), *_split(script), end_marker(cli_name, shell)]
    return _join(lines)


# --- Pure block editing ---


@dataclass(frozen=True)
class MarkerBlock:
    """Position of one marker block: line indexes of BEGIN and END, inclusive."""

    start: int
    end: int
    version: int


class BlockEdit(NamedTuple):
    """Result of a block edit. ``found`` reports whether a block existed before."""

    content: str
    changed: bool
    found: bool


def _split(content: str) -> list[str]:
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _join(lines: Sequence[str]) -> str:
    return "\n".join(lines) + "\n" if lines else ""


def _find_in_lines(lines: Sequence[str], cli_name: str, shell: ShellKind) -> list[MarkerBlock]:
    begin = _begin_pattern(cli_name, shell)
    end = end_marker(cli_name, shell)
    blocks: list[MarkerBlock] = []
    start: Optional[int] = None
    version = 0
    for index, raw in enumerate(lines):
        line = raw.rstrip("\r").strip()
        match = begin.fullmatch(line)
        if match:
            if start is not None:
                raise ProfileFormatError(
                    f"Nested '{cli_name} {shell.value}' completion block at line {index + 1}"
                )
            start, version = index, int(match.group(1))
        elif line == end:
            if start is None:
                raise ProfileFormatError(
                    f"Completion end marker without a begin marker at line {index + 1}"
                )
            blocks.append(MarkerBlock(start=start, end=index, version=version))
            start = None
    if start is not None:
        raise ProfileFormatError(
            f"Unterminated '{cli_name} {shell.value}' completion block at line {start + 1}"
        )
    return blocks


def find_blocks(content: str, cli_name: str, shell: Union[ShellKind, str]) -> list[MarkerBlock]:
    """Locate every marker block for ``(cli_name, shell)`` in *content*.

    Raises:
        ProfileFormatError: If a block is unterminated, nested, or an end
            marker has no matching begin marker.
    """
    return _find_in_lines(_split(content), cli_name, ShellKind(shell))


def _drop_block(lines: list[str], block: MarkerBlock) -> list[str]:
    """Remove *block* and collapse the blank line left around it."""
    remaining = lines[: block.start] + lines[block.end + 1 :]
    i = block.start
    at_gap = i == len(remaining) or not remaining[i].strip()
    if i > 0 and not remaining[i - 1].strip() and at_gap:
        del remaining[i - 1]
    return remaining


def insert_block(
    content: str,
    block: str,
    cli_name: str,
    shell: Union[ShellKind, str],
    force: bool = False,
    preamble: Sequence[str] = (),
) -> BlockEdit:
    """Add a framed *block* to *content*, or replace an existing one.

    * No existing block: append it, separated from existing content by one
      blank line (reusing a trailing blank line if there is one). An empty
      file starts with *preamble* instead.
    * Existing block, ``force`` false: return *content* unchanged.
    * Existing block, ``force`` true: replace the first block in place and
      drop any duplicates.

    Raises:
        ProfileFormatError: If *content* holds a malformed block.
    """
    kind = ShellKind(shell)
    lines = _split(content)
    blocks = _find_in_lines(lines, cli_name, kind)
    block_lines = _split(block)

    if not blocks:
        if lines and lines[-1].strip():
            new_lines = [*lines, "", *block_lines]
        elif lines:
            new_lines = [*lines, *block_lines]
        else:
            new_lines = [*preamble, *block_lines]
        return BlockEdit(_join(new_lines), True, False)

    if not force:
        return BlockEdit(content, False, True)

    new_lines = list(lines)
    for duplicate in reversed(blocks[1:]):
        new_lines = _drop_block(new_lines, duplicate)
    first = blocks[0]
    new_lines[first.start : first.end + 1] = block_lines
    new_content = _join(new_lines)
    return BlockEdit(new_content, new_content != content, True)


def remove_block(content: str, cli_name: str, shell: Union[ShellKind, str]) -> BlockEdit:
    """Remove every marker block for ``(cli_name, shell)`` from *content*.

    Content without a block is returned unchanged.

    Raises:
        ProfileFormatError: If *content* holds a malformed block.
    """
    lines = _split(content)
    blocks = _find_in_lines(lines, cli_name, ShellKind(shell))
    if not blocks:
        return BlockEdit(content, False, False)
    for block in reversed(blocks):
        lines = _drop_block(lines, block)
    return BlockEdit(_join(lines), True, True)


# --- Locations ---


@dataclass(frozen=True)
class ProfileLocation:
    """Where a completion lives for one shell and scope.

    Attributes:
        path: The profile or completion file.
        shell: Target shell.
        scope: User or global installation.
        installation_type: Whether the file is shared (profile block) or ours
            alone (standalone file).
        sanctioned_dir: Directory *path* must stay inside.
    """

    path: Path
    shell: ShellKind
    scope: InstallationScope
    installation_type: InstallationType
    sanctioned_dir: Path

    @property
    def is_standalone(self) -> bool:
        return self.installation_type == InstallationType.STANDALONE_FILE

    def activation_command(self) -> str:
        """Command that loads the completion into the running shell."""
        if self.shell == ShellKind.POWERSHELL:
            return ". '" + str(self.path).replace("'", "''") + "'"
        return f"source {shlex.quote(str(self.path))}"


def default_system_root(env: ShellEnvironment) -> Path:
    """Base of the system-wide completion directories."""
    if env.is_windows:
        return Path(env.variables.get("ProgramFiles") or "C:\\Program Files")
    return Path("/")


def locate_profile(
    shell: ShellKind,
    scope: InstallationScope,
    cli_name: str,
    env: Optional[ShellEnvironment] = None,
    system_root: Optional[Path] = None,
) -> ProfileLocation:
    """Resolve the file a completion for *cli_name* is installed into.

    User scope edits the home directory:

    * bash: ``~/.bashrc``; zsh: ``~/.zshrc``
    * fish: ``~/.config/fish/completions/<cli>.fish`` (standalone)
    * powershell: the current-user profile

    Global scope writes under *system_root*:

    * bash: ``etc/bash_completion.d/<cli>``
    * zsh: ``usr/local/share/zsh/site-functions/_<cli>``
    * fish: ``usr/share/fish/vendor_completions.d/<cli>.fish``
    * powershell: the all-users ``profile.ps1``

    The file does not need to exist.

    Raises:
        PathSafetyError: If the resolved path escapes its sanctioned
            directory (e.g. a *cli_name* containing ``..``).
    """
    env = env or ShellEnvironment.current()
    home = env.home
    root = system_root if system_root is not None else default_system_root(env)

    if scope == InstallationScope.USER:
        if shell == ShellKind.BASH:
            location = _profile_block(home / ".bashrc", shell, scope, home)
        elif shell == ShellKind.ZSH:
            location = _profile_block(home / ".zshrc", shell, scope, home)
        elif shell == ShellKind.FISH:
            directory = home / ".config" / "fish" / "completions"
            location = _standalone(directory, f"{cli_name}.fish", shell, scope)
        else:
            if env.is_windows:
                directory = home / "Documents" / "PowerShell"
            else:
                directory = home / ".config" / "powershell"
            location = _profile_block(
                directory / "Microsoft.PowerShell_profile.ps1", shell, scope, home
            )
    else:
        if shell == ShellKind.BASH:
            location = _standalone(root / "etc" / "bash_completion.d", cli_name, shell, scope)
        elif shell == ShellKind.ZSH:
            directory = root / "usr" / "local" / "share" / "zsh" / "site-functions"
            location = _standalone(directory, f"_{cli_name}", shell, scope)
        elif shell == ShellKind.FISH:
            directory = root / "usr" / "share" / "fish" / "vendor_completions.d"
            location = _standalone(directory, f"{cli_name}.fish", shell, scope)
        else:
            if env.is_windows:
                directory = root / "PowerShell" / "7"
            else:
                directory = root / "opt" / "microsoft" / "powershell" / "7"
            location = _profile_block(directory / "profile.ps1", shell, scope, directory)

    check_path_safety(location)
    return location


def _profile_block(
    path: Path, shell: ShellKind, scope: InstallationScope, sanctioned: Path
) -> ProfileLocation:
    return ProfileLocation(path, shell, scope, InstallationType.PROFILE_BLOCK, sanctioned)


def _standalone(
    directory: Path, filename: str, shell: ShellKind, scope: InstallationScope
) -> ProfileLocation:
    return ProfileLocation(
        directory / filename, shell, scope, InstallationType.STANDALONE_FILE, directory
    )


def check_path_safety(location: ProfileLocation) -> None:
    """Refuse a location whose path leaves its sanctioned directory.

    The check is lexical (``..`` segments are collapsed without following
    symlinks), so symlinked dotfiles inside the home directory still work.

    Raises:
        PathSafetyError: If the path is outside ``location.sanctioned_dir``
            or is the directory itself.
    """
    path = os.path.normpath(str(location.path))
    base = os.path.normpath(str(location.sanctioned_dir))
    try:
        inside = os.path.commonpath([path, base]) == base and path != base
    except ValueError:
        inside = False
    if not inside:
        raise PathSafetyError(
            f"Refusing to touch {location.path}: outside {location.sanctioned_dir}"
        )


# --- Manager ---


class ProfileManager:
    """Install and uninstall completion blocks for one CLI.

    Args:
        cli_name: Executable name the completion is registered for.
        env: Environment used to find the home directory and platform.
        system_root: Base of system-wide directories for global installs.

    Example::

        manager = ProfileManager("mycli")
        result = manager.install(ShellKind.BASH, InstallationScope.USER, script)
        if result.restart_required:
            print(result.activation_command)
    """

    def __init__(
        self,
        cli_name: str,
        env: Optional[ShellEnvironment] = None,
        system_root: Optional[Path] = None,
    ) -> None:
        self.cli_name = cli_name
        self.env = env or ShellEnvironment.current()
        self.system_root = system_root

    def locate(self, shell: ShellKind, scope: InstallationScope) -> ProfileLocation:
        return locate_profile(shell, scope, self.cli_name, self.env, self.system_root)

    def install(
        self,
        shell: ShellKind,
        scope: InstallationScope,
        script: str,
        force: bool = False,
    ) -> InstallResult:
        """Add the completion block for *shell* to its profile.

        *script* is the bare generated script; the markers are added here.
        A second install without *force* leaves the file untouched.

        Raises:
            PathSafetyError: If the profile path is not sanctioned.
            ProfileFormatError: If the profile holds a malformed block.
            FileSystemError: If the profile cannot be read or written.
        """
        location = self.locate(shell, scope)
        fs.ensure_file(location.path)
        content = fs.read_text(location.path)

        preamble: list[str] = []
        if location.is_standalone:
            first = next(iter(_split(script)), "")
            if first.startswith(_HOISTED_PREFIXES):
                preamble.append(first)

        block = frame_script(script, self.cli_name, shell)
        edit = insert_block(content, block, self.cli_name, shell, force=force, preamble=preamble)

        if edit.changed:
            fs.atomic_write(location.path, edit.content)
            logger.debug(
                "%s %s completion block in %s",
                "Replaced" if edit.found else "Added",
                shell.value,
                location.path,
            )
        else:
            logger.debug("%s completion already present in %s", shell.value, location.path)

        return InstallResult(
            success=True,
            shell=shell,
            path=str(location.path),
            already_installed=edit.found and not force,
            replaced=edit.found and force,
            restart_required=edit.changed,
            activation_command=location.activation_command() if edit.changed else None,
        )

    def uninstall(self, shell: ShellKind, scope: InstallationScope) -> UninstallResult:
        """Remove the completion block for *shell* from its profile.

        A profile without a block is left untouched and still reported as a
        success. A standalone file left with nothing but its preamble is
        deleted.

        Raises:
            PathSafetyError: If the profile path is not sanctioned.
            ProfileFormatError: If the profile holds a malformed block.
            FileSystemError: If the profile cannot be read or written.
        """
        location = self.locate(shell, scope)
        content = fs.read_text(location.path)
        edit = remove_block(content, self.cli_name, shell)

        if edit.changed:
            leftover = [
                line for line in _split(edit.content)
                if line.strip() and not line.startswith(_HOISTED_PREFIXES)
            ]
            if location.is_standalone and not leftover:
                fs.remove_file(location.path)
                logger.debug("Removed %s", location.path)
            else:
                fs.atomic_write(location.path, edit.content)
                logger.debug("Removed %s completion block from %s", shell.value, location.path)

        return UninstallResult(
            success=True,
            shell=shell,
            path=str(location.path),
            removed=edit.found,
        )
