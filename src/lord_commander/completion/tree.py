"""Snapshot the live Click/Typer command set into a descriptor tree.

The generators never look at Click objects directly. Instead this module
walks the registered command set once and produces an immutable
:class:`~lord_commander.models.CommandDescriptor` tree, preserving the order
in which commands and options were declared (completion menus show them in
that order, not alphabetically).

Typer applications are converted with :func:`typer.main.get_command`, so a
``typer.Typer`` and the ``click.Group`` it produces yield the same tree.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

import click
import typer

from lord_commander.exceptions import StructuralError
from lord_commander.models import ArgDescriptor, CommandDescriptor, OptionDescriptor


def make_descriptor(
    name: str,
    description: str = "",
    options: Iterable[OptionDescriptor] = (),
    positional_args: Iterable[ArgDescriptor] = (),
    subcommands: Iterable[CommandDescriptor] = (),
) -> CommandDescriptor:
    """Assemble a :class:`CommandDescriptor`, checking sibling uniqueness.

    Raises:
        StructuralError: If two entries of *subcommands* share a name.
    """
    children = tuple(subcommands)
    seen: set[str] = set()
    for child in children:
        if child.name in seen:
            raise StructuralError(
                f"Command '{name}' has more than one subcommand named '{child.name}'"
            )
        seen.add(child.name)
    return CommandDescriptor(
        name=name,
        description=_one_line(description),
        options=tuple(options),
        positional_args=tuple(positional_args),
        subcommands=children,
    )


def build_command_tree(
    command: Union[click.Command, typer.Typer],
    name: Optional[str] = None,
) -> CommandDescriptor:
    """Build a descriptor tree from a Click command or Typer application.

    Hidden commands and hidden options are left out. Visits every command
    and option exactly once.

    Args:
        command: The root of the live command set.
        name: Name for the root node; defaults to the command's own name.

    Returns:
        The root :class:`CommandDescriptor`. Its name is the CLI name.
    """
    if isinstance(command, typer.Typer):
        command = typer.main.get_command(command)
    root_name = name or command.name or "cli"
    return _describe(command, root_name)


def _describe(command: click.Command, name: str) -> CommandDescriptor:
    options: list[OptionDescriptor] = []
    arguments: list[ArgDescriptor] = []
    for param in command.params:
        if isinstance(param, click.Option):
            if param.hidden:
                continue
            options.append(_describe_option(param))
        elif isinstance(param, click.Argument):
            arguments.append(
                ArgDescriptor(
                    name=param.human_readable_name,
                    required=param.required,
                    variadic=param.nargs == -1,
                    description=_one_line(getattr(param, "help", None) or ""),
                )
            )

    children: list[CommandDescriptor] = []
    if isinstance(command, click.Group):
        # ``commands`` keeps insertion order; ``list_commands`` may sort.
        for child_name, child in command.commands.items():
            if child.hidden:
                continue
            children.append(_describe(child, child_name))

    return make_descriptor(
        name=name,
        description=_command_help(command),
        options=options,
        positional_args=arguments,
        subcommands=children,
    )


def _describe_option(option: click.Option) -> OptionDescriptor:
    flags: list[str] = []
    for flag in [*option.opts, *option.secondary_opts]:
        if flag not in flags:
            flags.append(flag)
    return OptionDescriptor(
        flags=tuple(flags),
        takes_value=not option.is_flag and not option.count,
        description=_one_line(option.help or ""),
    )


def _command_help(command: click.Command) -> str:
    return command.short_help or command.help or ""


def _one_line(text: str) -> str:
    """Collapse *text* to its first paragraph on a single line."""
    paragraph = text.strip().split("\n\n", 1)[0]
    return " ".join(paragraph.split())
