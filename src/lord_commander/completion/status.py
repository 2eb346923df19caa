"""Installation status checks.

Status is computed fresh on every call: profile files can change between
invocations, so nothing here is cached.

``is_active`` answers whether the *running* session has the completion
loaded. Generated scripts export ``_<CLI>_COMPLETION=<shell>:<version>``
when sourced, which is the only evidence consulted:

* marker present for this shell at the current version -> ``True``
* marker present for this shell at another version -> ``False``
* anything else -> ``None`` (a fresh shell looks the same as a stale one)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from lord_commander import fs
from lord_commander.completion.detect import ShellEnvironment, detect_shell
from lord_commander.completion.generators.base import (
    COMPLETION_FORMAT_VERSION,
    active_marker_value,
    active_marker_variable,
)
from lord_commander.completion.profile import find_blocks, locate_profile
from lord_commander.exceptions import CommanderError
from lord_commander.models import (
    InstallationScope,
    InstallationStatus,
    InstallationType,
    ShellKind,
)

logger = logging.getLogger(__name__)


def registration_pattern(cli_name: str, shell: ShellKind) -> re.Pattern[str]:
    """Pattern for a hand-written completion registration of *cli_name*.

    Matches the shell's own registration command as well as the
    ``eval "$(<cli> completion generate)"`` idiom.
    """
    name = re.escape(cli_name)
    quoted = rf"['\"]?{name}['\"]?"
    if shell == ShellKind.BASH:
        own = rf"^\s*complete\b.*\s{quoted}\s*$"
    elif shell == ShellKind.ZSH:
        own = rf"^\s*compdef\b.*\s{quoted}\s*$"
    elif shell == ShellKind.FISH:
        own = rf"^\s*complete\b.*\s-c\s+{quoted}(\s|$)"
    else:
        own = rf"Register-ArgumentCompleter\b.*-CommandName\s+{quoted}"
    return re.compile(rf"{own}|\b{name}\s+completion\s+generate\b", re.MULTILINE)


def session_state(
    cli_name: str, shell: ShellKind, env: ShellEnvironment
) -> Optional[bool]:
    """Ternary answer to "is the completion loaded in this session?"."""
    value = env.variables.get(active_marker_variable(cli_name), "").strip()
    if not value:
        return None
    marker_shell, _, _ = value.partition(":")
    if marker_shell != shell.value:
        return None
    return value == active_marker_value(shell.value)


def check_status(
    cli_name: str,
    shell: Union[ShellKind, str, None] = None,
    env: Optional[ShellEnvironment] = None,
    system_root: Optional[Path] = None,
) -> InstallationStatus:
    """Report whether the completion for *cli_name* is installed and active.

    The user profile is checked before the global one; the first location
    holding a marker block (or, failing that, a recognisable registration)
    wins.

    Args:
        cli_name: Executable name the completion is registered for.
        shell: Shell to check; detected from *env* when omitted.
        env: Environment to inspect; defaults to the running process.
        system_root: Base of system-wide directories.

    Returns:
        A fresh :class:`InstallationStatus`. Read errors are reported in
        ``error_message`` rather than raised.

    Raises:
        UnsupportedShellError: If *shell* names an unsupported shell.
    """
    env = env or ShellEnvironment.current()
    kind = shell if isinstance(shell, ShellKind) else detect_shell(shell, env)
    status = InstallationStatus(
        cli_name=cli_name,
        shell=kind,
        is_active=session_state(cli_name, kind, env),
    )

    errors: list[str] = []
    for scope in (InstallationScope.USER, InstallationScope.GLOBAL):
        try:
            location = locate_profile(kind, scope, cli_name, env, system_root)
            content = fs.read_text(location.path)
            blocks = find_blocks(content, cli_name, kind)
        except CommanderError as exc:
            logger.debug("Status check for %s scope failed: %s", scope.value, exc)
            errors.append(str(exc))
            continue

        if blocks:
            version = blocks[0].version
            status = status.model_copy(
                update={
                    "installed": True,
                    "installation_path": str(location.path),
                    "installation_type": location.installation_type,
                    "scope": scope,
                    "installed_version": version,
                }
            )
            if version < COMPLETION_FORMAT_VERSION:
                status = status.model_copy(
                    update={
                        "hint": (
                            f"Installed completion is format v{version}; "
                            f"run '{cli_name} completion install --force' to upgrade."
                        )
                    }
                )
            break

        if registration_pattern(cli_name, kind).search(content):
            status = status.model_copy(
                update={
                    "installed": True,
                    "installation_path": str(location.path),
                    "installation_type": InstallationType.UNKNOWN,
                    "scope": scope,
                }
            )
            break

    if errors and not status.installed:
        status = status.model_copy(update={"error_message": "; ".join(errors)})
    return status
