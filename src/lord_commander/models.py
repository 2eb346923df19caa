"""Canonical Pydantic models shared across all lord_commander modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Command tree models** -- immutable snapshots of the live command set,
produced by :mod:`lord_commander.completion.tree` and consumed by the
script generators:
    :class:`OptionDescriptor`, :class:`ArgDescriptor`, and
    :class:`CommandDescriptor`.

**Completion models** -- shells, scopes, and the results reported by the
profile manager and status checker:
    :class:`ShellKind`, :class:`InstallationScope`,
    :class:`InstallationType`, :class:`InstallResult`,
    :class:`UninstallResult`, and :class:`InstallationStatus`.

**Configuration models** -- framework options passed to
:func:`~lord_commander.app.create_cli` and the per-user JSON config:
    :class:`BuiltinCommandsConfig`, :class:`AutocompleteConfig`,
    :class:`CLIConfig`, and :class:`GlobalConfig`.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Command tree ---


class OptionDescriptor(BaseModel):
    """A single command-line option and every flag spelling that selects it.

    ``flags`` keeps declaration order (short forms usually first) so that
    generated scripts are byte-for-byte deterministic.

    Example::

        OptionDescriptor(flags=("-c", "--config"), takes_value=True,
                         description="Configuration file path")
    """

    model_config = ConfigDict(frozen=True)

    flags: tuple[str, ...]
    takes_value: bool = False
    description: str = ""


class ArgDescriptor(BaseModel):
    """A positional argument of a command."""

    model_config = ConfigDict(frozen=True)

    name: str
    required: bool = True
    variadic: bool = False
    description: str = ""


class CommandDescriptor(BaseModel):
    """One node of the command tree snapshot.

    The root node carries the CLI name and its global options; every other
    node is a sub-command. Siblings are kept in registration order and
    must have unique names (enforced by
    :func:`~lord_commander.completion.tree.make_descriptor`).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    options: tuple[OptionDescriptor, ...] = ()
    positional_args: tuple[ArgDescriptor, ...] = ()
    subcommands: tuple[CommandDescriptor, ...] = ()

    def walk(
        self, _prefix: tuple[str, ...] = ()
    ) -> list[tuple[tuple[str, ...], CommandDescriptor]]:
        """Return ``(path, node)`` pairs for this node and all descendants.

        The root is reported with the empty path. Order is depth-first,
        parents before children, siblings in declaration order.
        """
        pairs: list[tuple[tuple[str, ...], CommandDescriptor]] = [(_prefix, self)]
        for sub in self.subcommands:
            pairs.extend(sub.walk(_prefix + (sub.name,)))
        return pairs

    def find(self, path: tuple[str, ...]) -> Optional[CommandDescriptor]:
        """Return the descendant at *path*, or ``None`` if it does not exist."""
        node: CommandDescriptor = self
        for part in path:
            match = next((s for s in node.subcommands if s.name == part), None)
            if match is None:
                return None
            node = match
        return node


CommandDescriptor.model_rebuild()


# --- Shells and installation ---


class ShellKind(str, enum.Enum):
    """The closed set of supported shells. There is no "unknown" member."""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"
    POWERSHELL = "powershell"


class InstallationScope(str, enum.Enum):
    """Which profile a completion is installed into."""

    USER = "user"
    GLOBAL = "global"


class InstallationType(str, enum.Enum):
    """How an installed completion was found on disk."""

    PROFILE_BLOCK = "profile-block"
    STANDALONE_FILE = "standalone-file"
    UNKNOWN = "unknown"


class InstallResult(BaseModel):
    """Outcome of :func:`~lord_commander.completion.manager.install_completion`.

    ``already_installed`` is ``True`` when a marker block for the same CLI
    and shell was present and ``force`` was not given; the file is then left
    byte-for-byte unchanged and ``restart_required`` is ``False``.
    """

    success: bool
    shell: ShellKind
    path: Optional[str] = None
    already_installed: bool = False
    replaced: bool = False
    restart_required: bool = False
    activation_command: Optional[str] = None
    error: Optional[str] = None
    suggestion: Optional[str] = None


class UninstallResult(BaseModel):
    """Outcome of :func:`~lord_commander.completion.manager.uninstall_completion`."""

    success: bool
    shell: ShellKind
    path: Optional[str] = None
    removed: bool = False
    error: Optional[str] = None
    suggestion: Optional[str] = None


class InstallationStatus(BaseModel):
    """Fresh report on whether a completion is installed and active.

    ``is_active`` is ternary: ``True`` only with positive evidence that the
    running session loaded the completion, ``False`` when the session
    evidently loaded a different format version, and ``None`` when nothing
    can be concluded.
    ``hint`` carries a next step, e.g. when the installed block was written
    by an older format version.
    """

    cli_name: str
    shell: ShellKind
    installed: bool = False
    installation_path: Optional[str] = None
    installation_type: InstallationType = InstallationType.UNKNOWN
    scope: Optional[InstallationScope] = None
    installed_version: Optional[int] = None
    is_active: Optional[bool] = None
    error_message: Optional[str] = None
    hint: Optional[str] = None


# --- Configuration ---


class BuiltinCommandsConfig(BaseModel):
    """Which built-in commands are registered ahead of user commands."""

    completion: bool = True
    hello: bool = False
    version: bool = False


class AutocompleteConfig(BaseModel):
    """Autocomplete behaviour applied when the CLI is created.

    When ``auto_install`` is set, the completion for the detected shell is
    installed into the user profile on startup (a no-op once installed).
    A non-empty ``shells`` list restricts auto-installation to those shells.
    """

    enabled: bool = True
    auto_install: bool = False
    shells: list[ShellKind] = Field(default_factory=list)


class CLIConfig(BaseModel):
    """Framework options for :func:`~lord_commander.app.create_cli`.

    Example::

        CLIConfig(
            name="mycli",
            version="1.2.0",
            description="Deploy things",
            builtin_commands=BuiltinCommandsConfig(hello=True),
        )
    """

    name: str
    version: str = "0.0.0"
    description: str = ""
    builtin_commands: BuiltinCommandsConfig = Field(default_factory=BuiltinCommandsConfig)
    autocomplete: AutocompleteConfig = Field(default_factory=AutocompleteConfig)


class GlobalConfig(BaseModel):
    """Per-user settings stored as ``config.json`` in the CLI's config directory."""

    default_shell: Optional[ShellKind] = None
    default_scope: InstallationScope = InstallationScope.USER
    autocomplete: Optional[AutocompleteConfig] = None
