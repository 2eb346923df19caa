"""Command registration with built-in precedence.

Commands reach the CLI from two places: built-in commands shipped with
lord_commander (``completion``, ``hello``, ``version``) and commands
supplied by the host program, either passed explicitly to
:func:`~lord_commander.app.create_cli` or discovered through the
``lord_commander.commands`` entry-point group.

:func:`register_commands` merges them under a fixed policy:

* Enabled built-ins are registered first, in their declared order.
* Discovered commands follow in discovery order.
* A discovered command named like an enabled built-in is skipped and a
  diagnostic is recorded; the CLI still starts.
* The same command offered twice by the same source is registered once.
* Two different sources offering the same name is a
  :class:`~lord_commander.exceptions.StructuralError` naming both.

Nothing is attached to the Typer app until the whole set has been
validated, so a conflict leaves the app untouched.

Third-party packages expose commands with an entry point::

    [project.entry-points."lord_commander.commands"]
    deploy = "my_package.commands:deploy"

The target may be a :class:`CommandSpec`, a ``typer.Typer`` sub-app, or a
plain function.
"""

from __future__ import annotations

import importlib.metadata
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

import click
import typer
from typer.core import TyperGroup

from lord_commander.exceptions import StructuralError

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "lord_commander.commands"
"""Entry-point group scanned by :func:`discover_commands`."""


@dataclass(frozen=True)
class CommandSpec:
    """A command ready to be attached to a Typer application.

    Attributes:
        name: Command name as typed on the command line.
        attach: Callable that adds the command to a ``typer.Typer``.
        source: Where the command came from (module path or entry point),
            used in conflict diagnostics.
        description: One-line help text.
    """

    name: str
    attach: Callable[[typer.Typer], None]
    source: str = "<explicit>"
    description: str = ""

    @classmethod
    def from_function(
        cls,
        func: Callable[..., Any],
        name: Optional[str] = None,
        source: Optional[str] = None,
        help: Optional[str] = None,
    ) -> CommandSpec:
        """Wrap a plain function as a leaf command.

        The command name defaults to the function name with ``_`` replaced
        by ``-``.
        """
        command_name = name or func.__name__.replace("_", "-")

        def attach(app: typer.Typer) -> None:
            app.command(command_name, help=help)(func)

        doc = help or (func.__doc__ or "").strip().split("\n", 1)[0]
        return cls(
            name=command_name,
            attach=attach,
            source=source or f"{func.__module__}:{func.__qualname__}",
            description=doc,
        )

    @classmethod
    def from_typer(
        cls,
        sub_app: typer.Typer,
        name: str,
        source: Optional[str] = None,
        help: Optional[str] = None,
    ) -> CommandSpec:
        """Wrap a Typer sub-application as a command group."""

        def attach(app: typer.Typer) -> None:
            app.add_typer(sub_app, name=name, help=help)

        return cls(
            name=name,
            attach=attach,
            source=source or f"<typer:{name}>",
            description=help or "",
        )


@dataclass(frozen=True)
class BuiltinCommand:
    """A built-in command and whether the CLI configuration enables it."""

    spec: CommandSpec
    enabled: bool = True


@dataclass
class RegistrationResult:
    """Outcome of :func:`register_commands`.

    Attributes:
        registered: Commands attached to the app, in registration order.
        diagnostics: Human-readable notes about skipped commands.
    """

    registered: list[CommandSpec] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [spec.name for spec in self.registered]


def _conflict_message(name: str, first: CommandSpec, second: CommandSpec) -> str:
    return (
        f"Command name conflict: '{name}' is defined in both:\n"
        f"  - {first.source}\n"
        f"  - {second.source}"
    )


def register_commands(
    app: typer.Typer,
    builtins: Sequence[BuiltinCommand],
    discovered: Iterable[CommandSpec] = (),
) -> RegistrationResult:
    """Attach built-in and discovered commands to *app*.

    Args:
        app: The root Typer application.
        builtins: Built-in commands in their fixed order, each with its
            enabled flag.
        discovered: Host-supplied commands in discovery order.

    Returns:
        A :class:`RegistrationResult` with the final ordered set and any
        diagnostics for skipped commands.

    Raises:
        StructuralError: If two different sources define the same command
            name, or a built-in name is listed twice.

    Example::

        result = register_commands(
            app,
            [BuiltinCommand(completion_spec, True), BuiltinCommand(hello_spec, False)],
            [CommandSpec.from_function(deploy)],
        )
        result.names  # ['completion', 'deploy']
    """
    result = RegistrationResult()
    taken: dict[str, CommandSpec] = {}
    builtin_names: set[str] = set()

    for builtin in builtins:
        spec = builtin.spec
        if not builtin.enabled:
            logger.debug("Built-in command '%s' is disabled", spec.name)
            continue
        if spec.name in taken:
            raise StructuralError(_conflict_message(spec.name, taken[spec.name], spec))
        taken[spec.name] = spec
        builtin_names.add(spec.name)
        result.registered.append(spec)

    for spec in discovered:
        existing = taken.get(spec.name)
        if existing is None:
            taken[spec.name] = spec
            result.registered.append(spec)
            continue
        if spec.name in builtin_names:
            message = (
                f"Skipped command '{spec.name}' from {spec.source}: "
                f"the built-in '{spec.name}' command takes precedence."
            )
            logger.info(message)
            result.diagnostics.append(message)
            continue
        if existing.source == spec.source:
            logger.debug("Command '%s' from %s offered twice", spec.name, spec.source)
            continue
        raise StructuralError(
            _conflict_message(spec.name, existing, spec),
            suggestion="Rename one of the commands to avoid the conflict.",
        )

    for spec in result.registered:
        spec.attach(app)
        logger.debug("Registered command '%s' from %s", spec.name, spec.source)
    return result


def as_command_spec(obj: Any, name: str, source: str) -> CommandSpec:
    """Convert an entry-point target into a :class:`CommandSpec`.

    Raises:
        TypeError: If *obj* is none of the supported kinds.
    """
    if isinstance(obj, CommandSpec):
        return obj
    if isinstance(obj, typer.Typer):
        return CommandSpec.from_typer(obj, name=name, source=source)
    if callable(obj):
        return CommandSpec.from_function(obj, name=name, source=source)
    raise TypeError(f"Entry point '{name}' is not a command: {obj!r}")


def discover_commands(group: str = ENTRY_POINT_GROUP) -> list[CommandSpec]:
    """Load commands registered under the entry-point *group*.

    Entry points that fail to load are logged as warnings and skipped.

    Returns:
        Command specs in entry-point iteration order.
    """
    specs: list[CommandSpec] = []
    for ep in importlib.metadata.entry_points(group=group):
        try:
            specs.append(as_command_spec(ep.load(), ep.name, ep.value))
        except Exception as exc:
            logger.warning("Failed to load command '%s': %s", ep.name, exc)
    return specs


def ordered_group_class(order: Sequence[str]) -> type[TyperGroup]:
    """Return a ``TyperGroup`` subclass that lists commands in *order*.

    Typer adds plain commands before sub-apps when it builds the Click
    group; this restores registration order for help text and completion.
    Names missing from *order* keep their relative position at the end.
    *order* is read when the group is built, so it may be filled in after
    the application is created.
    """

    class RegistrationOrderGroup(TyperGroup):
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            super().__init__(*args, **kwargs)
            rank = {name: index for index, name in enumerate(order)}
            self.commands = dict(
                sorted(self.commands.items(), key=lambda item: rank.get(item[0], len(rank)))
            )

        def list_commands(self, ctx: click.Context) -> list[str]:
            return list(self.commands)

    return RegistrationOrderGroup
