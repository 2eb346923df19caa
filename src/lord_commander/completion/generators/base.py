"""Shared pieces of the per-shell script generators.

Each dialect module renders its script through a :class:`ScriptBuilder`,
one small function per grammar construct (function header, case arm,
registration line), so that quoting happens in exactly one place per shell.
The helpers here are dialect-neutral: identifier encoding, the
active-session marker, and the flattened list of command paths.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Iterator, Protocol

from lord_commander.models import CommandDescriptor, OptionDescriptor

COMPLETION_FORMAT_VERSION = 1
"""Version of the generated script layout and of the profile marker block."""


class ScriptGenerator(Protocol):
    """Signature shared by the four dialect modules' ``generate`` functions."""

    def __call__(self, tree: CommandDescriptor, cli_name: str) -> str: ...


class ScriptBuilder:
    """Accumulates script lines with indentation.

    Example::

        b = ScriptBuilder()
        with b.block("foo() {", "}"):
            b.line("echo hi")
        b.render()  # 'foo() {\\n    echo hi\\n}\\n'
    """

    def __init__(self, indent: str = "    ") -> None:
        self._lines: list[str] = []
        self._indent = indent
        self._depth = 0

    def line(self, text: str = "") -> None:
        """Append one line at the current indentation (blank lines stay empty)."""
        self._lines.append(f"{self._indent * self._depth}{text}" if text else "")

    def lines(self, texts: list[str]) -> None:
        for text in texts:
            self.line(text)

    def blank(self) -> None:
        self._lines.append("")

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    @contextmanager
    def block(self, opener: str, closer: str) -> Iterator[None]:
        """Emit *opener*, indent everything inside the ``with`` body, emit *closer*."""
        self.line(opener)
        with self.indented():
            yield
        self.line(closer)

    def render(self) -> str:
        return "\n".join(self._lines) + "\n"


def function_identifier(cli_name: str) -> str:
    """Encode *cli_name* into a string usable inside shell function names.

    Characters outside ``[A-Za-z0-9_]`` become ``_``; a leading digit is
    prefixed with ``_``.

    Example::

        >>> function_identifier("test-cli")
        'test_cli'
    """
    ident = re.sub(r"[^A-Za-z0-9_]", "_", cli_name)
    if not ident or ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def active_marker_variable(cli_name: str) -> str:
    """Environment variable a loaded completion script exports.

    Example::

        >>> active_marker_variable("test-cli")
        '_TEST_CLI_COMPLETION'
    """
    return f"_{function_identifier(cli_name).upper().lstrip('_')}_COMPLETION"


def active_marker_value(shell: str) -> str:
    """Value of the active-session marker for *shell* at the current format version."""
    return f"{shell}:{COMPLETION_FORMAT_VERSION}"


def command_paths(tree: CommandDescriptor) -> list[tuple[str, CommandDescriptor]]:
    """Return ``(space-joined path, node)`` for every node, root first as ``""``."""
    return [(" ".join(path), node) for path, node in tree.walk()]


def subcommand_paths(tree: CommandDescriptor) -> list[str]:
    """Every non-root path in declaration order (the words that select commands)."""
    return [path for path, _ in command_paths(tree) if path]


def value_flags(node: CommandDescriptor) -> list[str]:
    """Flags of *node* whose option consumes the following word."""
    return [flag for opt in node.options if opt.takes_value for flag in opt.flags]


def all_flags(node: CommandDescriptor) -> list[str]:
    return [flag for opt in node.options for flag in opt.flags]


def one_line(text: str) -> str:
    """Collapse whitespace (including newlines) so text fits on one script line."""
    return " ".join(text.split())


def option_help(option: OptionDescriptor) -> str:
    return one_line(option.description)
