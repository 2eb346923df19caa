"""Typer application factory and CLI entry point.

:func:`create_cli` builds a ready-to-run ``typer.Typer`` application from a
:class:`~lord_commander.models.CLIConfig`:

1. The root callback installs the global
   :class:`~lord_commander.output.OutputManager` from the ``--json``,
   ``--plain``, ``--no-color``, ``--quiet`` and ``--verbose`` flags and
   stores the CLI identity in ``ctx.obj``.
2. Built-in commands are registered first, then explicit and
   entry-point-discovered commands (see :mod:`lord_commander.registry`).
3. If the configuration asks for it, shell completion is installed for the
   detected shell.

:func:`run` invokes an application with the error boundary: a
:class:`~lord_commander.exceptions.CommanderError` becomes one error line
plus a suggestion and the error's exit code; anything else is written to a
crash log.

:func:`main` is the console-script entry point of the bundled
``lord-commander`` demo CLI.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional, Sequence

import typer

from lord_commander import __version__
from lord_commander.commands import default_builtins
from lord_commander.exceptions import CommanderError
from lord_commander.exit_codes import EXIT_GENERIC_FAILURE
from lord_commander.models import BuiltinCommandsConfig, CLIConfig
from lord_commander.registry import (
    ENTRY_POINT_GROUP,
    CommandSpec,
    discover_commands,
    ordered_group_class,
    register_commands,
)

logger = logging.getLogger(__name__)


def create_cli(
    config: CLIConfig,
    commands: Sequence[CommandSpec] = (),
    entry_point_group: Optional[str] = None,
) -> typer.Typer:
    """Create a Typer application with built-ins and the given commands.

    Args:
        config: CLI identity and framework options.
        commands: Commands supplied by the host program, in order.
        entry_point_group: If given, commands registered under this
            entry-point group are discovered and appended after *commands*.

    Returns:
        The configured ``typer.Typer`` application.

    Raises:
        StructuralError: If two different sources define the same command.

    Example::

        app = create_cli(
            CLIConfig(name="mycli", version="1.0.0"),
            commands=[CommandSpec.from_function(deploy)],
        )
        run(app)
    """
    order: list[str] = []
    app = typer.Typer(
        name=config.name,
        help=config.description or None,
        cls=ordered_group_class(order),
        no_args_is_help=True,
        add_completion=False,
        rich_markup_mode="rich",
    )
    diagnostics: list[str] = []

    def _version_callback(value: bool) -> None:
        if value:
            typer.echo(f"{config.name} {config.version}")
            raise typer.Exit()

    @app.callback()
    def main_callback(
        ctx: typer.Context,
        version: bool = typer.Option(
            False,
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
        json_output: bool = typer.Option(False, "--json", help="JSON output format."),
        plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
        no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
        quiet: bool = typer.Option(
            False, "--quiet", "-q", help="Suppress non-essential output."
        ),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    ) -> None:
        """Root callback executed before every sub-command."""
        from lord_commander.output import OutputFormat, OutputManager, set_output

        fmt = OutputFormat.AUTO
        if json_output:
            fmt = OutputFormat.JSON
        elif plain_output:
            fmt = OutputFormat.PLAIN

        output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
        set_output(output)
        for message in diagnostics:
            output.debug(message)

        ctx.ensure_object(dict)
        ctx.obj["cli_name"] = config.name
        ctx.obj["cli_version"] = config.version
        ctx.obj["verbose"] = verbose

    discovered = list(commands)
    if entry_point_group:
        discovered.extend(discover_commands(entry_point_group))
    result = register_commands(app, default_builtins(config), discovered)
    order.extend(result.names)
    diagnostics.extend(result.diagnostics)

    if config.autocomplete.enabled and config.autocomplete.auto_install:
        _auto_install_completion(app, config)
    return app


def _auto_install_completion(app: typer.Typer, config: CLIConfig) -> None:
    """Install completion for the detected shell, never failing CLI creation.

    A per-user ``autocomplete`` section in the global config overrides the
    application's settings.
    """
    from lord_commander.completion import build_command_tree, detect_shell, install_completion
    from lord_commander.config import load_global_config, resolve_shell_override

    try:
        user_config = load_global_config(config.name)
        settings = user_config.autocomplete or config.autocomplete
        if not (settings.enabled and settings.auto_install):
            logger.debug("Autocomplete auto-install disabled by user config")
            return

        shell = detect_shell(resolve_shell_override(config.name, config=user_config))
        if settings.shells and shell not in settings.shells:
            logger.debug("Autocomplete not enabled for %s", shell.value)
            return

        tree = build_command_tree(app, name=config.name)
        result = install_completion(tree, shell=shell, scope=user_config.default_scope)
        if result.success:
            logger.debug("Autocomplete install for %s: %s", shell.value, result.path)
        else:
            logger.debug("Autocomplete install for %s failed: %s", shell.value, result.error)
    except CommanderError as exc:
        logger.debug("Autocomplete install skipped: %s", exc)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(app_name: str) -> str:
    """Write the current traceback to the data directory and return the path."""
    from lord_commander.config import get_data_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_data_dir(app_name) / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(log_path)


def run(app: typer.Typer, args: Optional[Sequence[str]] = None) -> None:
    """Invoke *app* with the error boundary.

    Raises:
        SystemExit: Always (from Typer, or with the error's exit code).
    """
    from lord_commander.output import error, report_error

    app_name = app.info.name or "lord-commander"
    try:
        app(args=list(args) if args is not None else None)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except CommanderError as exc:
        report_error(exc)
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log(app_name)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)


def main() -> None:
    """Entry point of the ``lord-commander`` console script."""
    _setup_signal_handlers()
    config = CLIConfig(
        name="lord-commander",
        version=__version__,
        description="Command registration and shell completion for Typer CLIs.",
        builtin_commands=BuiltinCommandsConfig(completion=True, hello=True, version=True),
    )
    try:
        app = create_cli(config, entry_point_group=ENTRY_POINT_GROUP)
    except CommanderError as exc:
        from lord_commander.output import report_error

        report_error(exc)
        sys.exit(exc.exit_code)
    run(app)
