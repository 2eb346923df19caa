"""Shell completion for CLIs built with lord_commander.

Typical use from a command::

    from lord_commander.completion import build_command_tree, install_completion

    tree = build_command_tree(app, name="mycli")
    result = install_completion(tree, shell="zsh")

Modules:

* :mod:`~lord_commander.completion.tree` -- snapshot of the live command set
* :mod:`~lord_commander.completion.detect` -- shell detection
* :mod:`~lord_commander.completion.generators` -- bash, zsh, fish and
  PowerShell script generators
* :mod:`~lord_commander.completion.profile` -- profile location and marker
  block editing
* :mod:`~lord_commander.completion.status` -- installation status
"""

from lord_commander.completion.detect import ShellEnvironment
from lord_commander.completion.manager import (
    check_completion_status,
    detect_shell,
    generate_completion,
    generate_completion_script,
    install_completion,
    uninstall_completion,
)
from lord_commander.completion.tree import build_command_tree

__all__ = [
    "ShellEnvironment",
    "build_command_tree",
    "check_completion_status",
    "detect_shell",
    "generate_completion",
    "generate_completion_script",
    "install_completion",
    "uninstall_completion",
]
