"""Per-shell completion script generators.

Each dialect module exposes ``generate(tree, cli_name) -> str``. Output is a
pure function of its inputs: the same tree always renders byte-identical
text, and an empty tree still renders a valid no-op registration.
"""

from __future__ import annotations

from typing import Optional, Union

from lord_commander.completion.detect import parse_shell
from lord_commander.completion.generators import bash, fish, powershell, zsh
from lord_commander.completion.generators.base import (
    COMPLETION_FORMAT_VERSION,
    ScriptGenerator,
    active_marker_value,
    active_marker_variable,
    function_identifier,
)
from lord_commander.models import CommandDescriptor, ShellKind

GENERATORS: dict[ShellKind, ScriptGenerator] = {
    ShellKind.BASH: bash.generate,
    ShellKind.ZSH: zsh.generate,
    ShellKind.FISH: fish.generate,
    ShellKind.POWERSHELL: powershell.generate,
}


def generate(
    tree: CommandDescriptor,
    shell: Union[ShellKind, str],
    cli_name: Optional[str] = None,
) -> str:
    """Render the completion script for *tree* in *shell*'s dialect.

    Args:
        tree: Root of the command descriptor tree.
        shell: Target shell, as a :class:`ShellKind` or a shell name.
        cli_name: Executable name to register; defaults to ``tree.name``.

    Raises:
        UnsupportedShellError: If *shell* is a name no generator handles.
    """
    kind = shell if isinstance(shell, ShellKind) else parse_shell(shell)
    return GENERATORS[kind](tree, cli_name or tree.name)


__all__ = [
    "COMPLETION_FORMAT_VERSION",
    "GENERATORS",
    "ScriptGenerator",
    "active_marker_value",
    "active_marker_variable",
    "function_identifier",
    "generate",
]
