"""lord_commander -- command registration and shell completion for Typer CLIs.

This package builds a Typer application from built-in and user-supplied
commands, snapshots the resulting command tree, and renders completion
scripts for bash, zsh, fish, and PowerShell. Completion scripts are
installed into the user's shell profile inside a versioned marker block so
that they can be replaced or removed without touching surrounding content.

Typical usage::

    from lord_commander.app import create_cli
    from lord_commander.models import CLIConfig

    app = create_cli(CLIConfig(name="mycli", version="1.0.0"))
    app()

Modules:
    app: CLI factory and console-script entry point.
    registry: Built-in/discovered command registration with precedence.
    completion: Tree snapshot, shell detection, script generation, profile
        installation, and status checks.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.3.0"

