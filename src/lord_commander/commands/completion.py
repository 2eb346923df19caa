"""Completion commands -- install, remove, print, and inspect completions.

Provides the ``<cli> completion`` command group:

* ``completion install`` -- write the completion block into the shell's
  profile (or completion directory with ``--global``).
* ``completion uninstall`` -- remove it again.
* ``completion generate`` -- print the framed script to stdout, or write it
  to ``--output``.
* ``completion status`` -- report where the completion is installed and
  whether the running session has it loaded.

Every sub-command snapshots the live command tree of the root application,
so the completion always reflects the commands actually registered.
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import click
import typer

from lord_commander.completion import (
    build_command_tree,
    check_completion_status,
    detect_shell,
    generate_completion_script,
    install_completion,
    uninstall_completion,
)
from lord_commander.config import load_global_config, resolve_shell_override
from lord_commander.exceptions import CommanderError
from lord_commander.exit_codes import EXIT_FILESYSTEM_ERROR
from lord_commander.fs import atomic_write
from lord_commander.models import CommandDescriptor, GlobalConfig, InstallationScope
from lord_commander.output import (
    Spinner,
    format_response,
    print_data,
    report_error,
    spinner,
    success,
    suggest,
    warning,
)

completion_app = typer.Typer(no_args_is_help=True)
"""Typer application for the ``completion`` command group."""

_SHELL_HELP = "Shell to target (bash, zsh, fish, powershell). Auto-detected if omitted."


def _cli_name(ctx: click.Context) -> str:
    obj = ctx.find_root().obj
    if isinstance(obj, dict) and obj.get("cli_name"):
        return obj["cli_name"]
    return ctx.find_root().info_name or "cli"


def _command_tree(ctx: click.Context) -> CommandDescriptor:
    return build_command_tree(ctx.find_root().command, name=_cli_name(ctx))


def _scope(global_scope: bool, config: GlobalConfig) -> InstallationScope:
    return InstallationScope.GLOBAL if global_scope else config.default_scope


def _fail(
    sp: Spinner,
    message: str,
    suggestion: Optional[str],
    exit_code: int = EXIT_FILESYSTEM_ERROR,
) -> NoReturn:
    sp.fail(message)
    if suggestion:
        suggest(suggestion)
    raise typer.Exit(code=exit_code)


@completion_app.command("install")
def completion_install(
    ctx: typer.Context,
    shell: Optional[str] = typer.Option(None, "--shell", "-s", help=_SHELL_HELP),
    global_scope: bool = typer.Option(
        False, "--global", "-g", help="Install system-wide instead of for this user."
    ),
    force: bool = typer.Option(
        False, "--force", help="Replace an existing completion block."
    ),
) -> None:
    """Install shell completion.

    Appends a marked completion block to the shell's profile. Running it
    again is a no-op unless ``--force`` is given, which replaces the block
    in place.

    Example::

        mycli completion install
        mycli completion install --shell zsh --force
        sudo mycli completion install --global
    """
    cli_name = _cli_name(ctx)
    try:
        config = load_global_config(cli_name)
        kind = detect_shell(resolve_shell_override(cli_name, flag=shell, config=config))
        tree = _command_tree(ctx)
    except CommanderError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code)

    with spinner(f"Installing {kind.value} completion...") as sp:
        try:
            result = install_completion(
                tree,
                shell=kind,
                scope=_scope(global_scope, config),
                force=force,
                cli_name=cli_name,
            )
        except CommanderError as exc:
            _fail(sp, str(exc), exc.suggestion, exc.exit_code)
        if not result.success:
            _fail(sp, result.error or "Installation failed", result.suggestion)

        if result.already_installed:
            sp.success(f"{kind.value} completion already installed in {result.path}")
            suggest("Use --force to reinstall.")
        else:
            verb = "Updated" if result.replaced else "Installed"
            sp.success(f"{verb} {kind.value} completion in {result.path}")
            if result.activation_command:
                suggest(f"Restart your shell or run: {result.activation_command}")


@completion_app.command("uninstall")
def completion_uninstall(
    ctx: typer.Context,
    shell: Optional[str] = typer.Option(None, "--shell", "-s", help=_SHELL_HELP),
    global_scope: bool = typer.Option(
        False, "--global", "-g", help="Remove the system-wide completion."
    ),
) -> None:
    """Remove shell completion.

    Removing a completion that is not installed is not an error.
    """
    cli_name = _cli_name(ctx)
    try:
        config = load_global_config(cli_name)
        kind = detect_shell(resolve_shell_override(cli_name, flag=shell, config=config))
    except CommanderError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code)

    with spinner(f"Removing {kind.value} completion...") as sp:
        try:
            result = uninstall_completion(
                cli_name, shell=kind, scope=_scope(global_scope, config)
            )
        except CommanderError as exc:
            _fail(sp, str(exc), exc.suggestion, exc.exit_code)
        if not result.success:
            _fail(sp, result.error or "Removal failed", result.suggestion)

        if result.removed:
            sp.success(f"Removed {kind.value} completion from {result.path}")
            suggest("Restart your shell to unload the completion.")
        else:
            sp.success(f"No {kind.value} completion installed in {result.path}")


@completion_app.command("generate")
def completion_generate(
    ctx: typer.Context,
    shell: Optional[str] = typer.Option(None, "--shell", "-s", help=_SHELL_HELP),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the script to this file instead of stdout."
    ),
) -> None:
    """Print the completion script.

    The script is framed by the same markers ``install`` writes, so it can
    be appended to a profile by hand or evaluated directly.

    Example::

        mycli completion generate --shell bash >> ~/.bashrc
        eval "$(mycli completion generate --shell bash)"
    """
    cli_name = _cli_name(ctx)
    try:
        config = load_global_config(cli_name)
        override = resolve_shell_override(cli_name, flag=shell, config=config)
        kind = detect_shell(override)
        script = generate_completion_script(_command_tree(ctx), kind, cli_name)
        if output is not None:
            atomic_write(output, script)
            success(f"Wrote {kind.value} completion to {output}")
        else:
            print_data(script.rstrip("\n"))
    except CommanderError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code)


@completion_app.command("status")
def completion_status(
    ctx: typer.Context,
    shell: Optional[str] = typer.Option(None, "--shell", "-s", help=_SHELL_HELP),
) -> None:
    """Show where completion is installed and whether it is active.

    ``active`` is ``yes`` only when the running shell has loaded the
    current script, ``no`` when it loaded an older one, and ``unknown``
    otherwise (for example in a shell opened before installation).
    """
    cli_name = _cli_name(ctx)
    try:
        config = load_global_config(cli_name)
        override = resolve_shell_override(cli_name, flag=shell, config=config)
        status = check_completion_status(cli_name, shell=override)
    except CommanderError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code)

    active = {True: "yes", False: "no", None: "unknown"}[status.is_active]
    format_response(
        {
            "cli": status.cli_name,
            "shell": status.shell.value,
            "installed": status.installed,
            "path": status.installation_path,
            "type": status.installation_type.value,
            "scope": status.scope.value if status.scope else None,
            "version": status.installed_version,
            "active": active,
        }
    )
    if status.error_message:
        warning(status.error_message)
    if status.hint:
        suggest(status.hint)
    elif not status.installed:
        suggest(f"Run '{cli_name} completion install' to enable completion.")

