"""Shell detection from environment signals.

Detection never spawns a subprocess and never fails: it always resolves to
one of the four :class:`~lord_commander.models.ShellKind` members. Signals
are consulted in priority order:

1. An explicit override (``--shell`` flag or ``<CLI>_SHELL`` variable).
   An unrecognised override raises
   :class:`~lord_commander.exceptions.UnsupportedShellError`.
2. The basename of the ``SHELL`` environment variable.
3. The name of the parent process, read from ``/proc`` where available.
4. A platform default: PowerShell on Windows, bash everywhere else.

All process state is read through :class:`ShellEnvironment` so tests can
supply a fake environment instead of mutating ``os.environ``.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Mapping, Optional

from lord_commander.exceptions import UnsupportedShellError
from lord_commander.models import ShellKind

logger = logging.getLogger(__name__)

_SHELL_NAMES: dict[str, ShellKind] = {
    "bash": ShellKind.BASH,
    "zsh": ShellKind.ZSH,
    "fish": ShellKind.FISH,
    "pwsh": ShellKind.POWERSHELL,
    "powershell": ShellKind.POWERSHELL,
    "powershell_ise": ShellKind.POWERSHELL,
}

SUPPORTED_SHELLS: tuple[str, ...] = tuple(kind.value for kind in ShellKind)
"""Canonical shell names accepted by ``--shell``."""


def _read_parent_process_name() -> Optional[str]:
    """Return the parent process's command name from ``/proc``, if readable."""
    comm = Path("/proc") / str(os.getppid()) / "comm"
    try:
        return comm.read_text(encoding="utf-8").strip() or None
    except OSError:
        return None


@dataclass(frozen=True)
class ShellEnvironment:
    """Snapshot of the process state that shell detection depends on.

    Attributes:
        variables: Environment variables (``os.environ`` by default).
        platform: ``sys.platform`` value.
        parent_process_name: Command name of the parent process, if known.
    """

    variables: Mapping[str, str] = field(default_factory=dict)
    platform: str = sys.platform
    parent_process_name: Optional[str] = None

    @classmethod
    def current(cls) -> ShellEnvironment:
        """Capture the environment of the running process."""
        return cls(
            variables=dict(os.environ),
            platform=sys.platform,
            parent_process_name=_read_parent_process_name(),
        )

    @property
    def is_windows(self) -> bool:
        return self.platform.startswith("win")

    @property
    def home(self) -> Path:
        """Home directory as seen by this environment."""
        if self.is_windows and self.variables.get("USERPROFILE"):
            return Path(self.variables["USERPROFILE"])
        if self.variables.get("HOME"):
            return Path(self.variables["HOME"])
        return Path.home()


def shell_from_name(name: str) -> Optional[ShellKind]:
    """Classify an executable name or path, or return ``None``.

    Accepts full paths (``/usr/local/bin/zsh``), Windows executables
    (``C:\\...\\pwsh.exe``), and login-shell names (``-bash``).
    """
    text = name.strip()
    if not text:
        return None
    if "\\" in text:
        base = PureWindowsPath(text).name
    else:
        base = PurePosixPath(text).name
    base = base.lower().lstrip("-")
    if base.endswith(".exe"):
        base = base[: -len(".exe")]
    return _SHELL_NAMES.get(base)


def parse_shell(name: str) -> ShellKind:
    """Resolve an explicit shell name given by the user.

    Raises:
        UnsupportedShellError: If *name* is not a supported shell.
    """
    kind = shell_from_name(name)
    if kind is None:
        raise UnsupportedShellError(name, SUPPORTED_SHELLS)
    return kind


def detect_shell(
    override: Optional[str] = None,
    env: Optional[ShellEnvironment] = None,
) -> ShellKind:
    """Classify the invoking shell.

    Args:
        override: Explicit shell name that wins outright when given.
        env: Environment to inspect; defaults to the running process.

    Returns:
        The detected :class:`ShellKind`. Never ``None``.

    Raises:
        UnsupportedShellError: If *override* names an unsupported shell.
    """
    if override:
        return parse_shell(override)

    env = env or ShellEnvironment.current()

    from_shell_var = shell_from_name(env.variables.get("SHELL", ""))
    if from_shell_var is not None:
        logger.debug("Shell detected from $SHELL: %s", from_shell_var.value)
        return from_shell_var

    if env.parent_process_name:
        from_parent = shell_from_name(env.parent_process_name)
        if from_parent is not None:
            logger.debug("Shell detected from parent process: %s", from_parent.value)
            return from_parent

    fallback = ShellKind.POWERSHELL if env.is_windows else ShellKind.BASH
    logger.debug("No shell signal matched, defaulting to %s", fallback.value)
    return fallback
