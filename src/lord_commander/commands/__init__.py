"""Built-in commands registered ahead of user commands.

:func:`default_builtins` returns them in their fixed registration order,
each flagged with whether the CLI configuration enables it.
"""

from __future__ import annotations

from lord_commander.models import CLIConfig
from lord_commander.registry import BuiltinCommand, CommandSpec


def default_builtins(config: CLIConfig) -> list[BuiltinCommand]:
    """Return ``completion``, ``hello`` and ``version`` as :class:`BuiltinCommand`\\ s."""
    from lord_commander.commands.completion import completion_app
    from lord_commander.commands.hello import hello_command
    from lord_commander.commands.version import version_command

    enabled = config.builtin_commands
    return [
        BuiltinCommand(
            CommandSpec.from_typer(
                completion_app,
                name="completion",
                source="lord_commander.commands.completion",
                help="Shell completion management.",
            ),
            enabled=enabled.completion,
        ),
        BuiltinCommand(
            CommandSpec.from_function(
                hello_command, name="hello", source="lord_commander.commands.hello"
            ),
            enabled=enabled.hello,
        ),
        BuiltinCommand(
            CommandSpec.from_function(
                version_command, name="version", source="lord_commander.commands.version"
            ),
            enabled=enabled.version,
        ),
    ]
