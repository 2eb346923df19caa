"""The ``hello`` command -- a minimal example of a registered command."""

from __future__ import annotations

from typing import Optional

import typer

from lord_commander.output import print_data


def hello_command(
    name: Optional[str] = typer.Argument(None, help="Who to greet."),
    uppercase: bool = typer.Option(False, "--uppercase", "-u", help="Shout the greeting."),
) -> None:
    """Print a greeting.

    Example::

        mycli hello
        mycli hello Ada --uppercase
    """
    greeting = f"Hello, {name or 'World'}!"
    print_data(greeting.upper() if uppercase else greeting)
