"""The ``version`` command -- print the CLI name and version."""

from __future__ import annotations

import typer

from lord_commander.output import OutputFormat, format_response, get_output, print_data


def version_command(ctx: typer.Context) -> None:
    """Show the CLI version."""
    obj = ctx.find_root().obj or {}
    name = obj.get("cli_name", ctx.find_root().info_name)
    version = obj.get("cli_version", "0.0.0")
    if get_output().format == OutputFormat.JSON:
        format_response({"name": name, "version": version})
    else:
        print_data(f"{name} {version}")
