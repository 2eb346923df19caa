"""Bash completion script generator.

The generated script defines one ``_<cli>_completion`` function registered
with ``complete -F``. At completion time it walks the words typed so far,
extending the current command path only with words that name a known
subcommand, then offers that command's options (current word starts with
``-``), its subcommands, or file names after an option that takes a value.

``compgen -W`` expands its word list, so every word is backslash-escaped
before it is placed in the list; case patterns and assignments are
single-quoted.
"""

from __future__ import annotations

import re
import shlex

from lord_commander.completion.generators.base import (
    ScriptBuilder,
    active_marker_value,
    active_marker_variable,
    all_flags,
    command_paths,
    function_identifier,
    one_line,
    subcommand_paths,
    value_flags,
)
from lord_commander.models import CommandDescriptor

_UNSAFE_WORD_CHARS = re.compile(r"([^A-Za-z0-9_\-.,:/@%+=])")


def quote(text: str) -> str:
    """Single-quote *text* for bash; embedded quotes become ``'\\''``."""
    return "'" + text.replace("'", "'\\''") + "'"


def compgen_word(word: str) -> str:
    """Escape *word* so that ``compgen -W`` expansion yields it unchanged."""
    return _UNSAFE_WORD_CHARS.sub(r"\\\1", word)


def word_list(words: list[str]) -> str:
    """Quoted assignment value for a ``compgen -W`` word list."""
    return quote(" ".join(compgen_word(w) for w in words))


def case_arm(b: ScriptBuilder, patterns: list[str], body: list[str]) -> None:
    """Emit ``'a'|'b') body ;;`` with each pattern quoted literally."""
    b.line("|".join(quote(p) for p in patterns) + ")")
    with b.indented():
        b.lines(body)
        b.line(";;")


def case_arm_default(b: ScriptBuilder) -> None:
    b.line("*)")
    with b.indented():
        b.line(";;")


def function_header(name: str) -> str:
    return f"{name}() {{"


def registration(function_name: str, cli_name: str) -> str:
    return f"complete -F {function_name} {shlex.quote(cli_name)}"


def generate(tree: CommandDescriptor, cli_name: str) -> str:
    """Render a self-contained bash completion script for *tree*."""
    function_name = f"_{function_identifier(cli_name)}_completion"
    paths = subcommand_paths(tree)

    b = ScriptBuilder()
    b.line("#!/usr/bin/env bash")
    b.line(f"# bash completion for {one_line(cli_name)}")
    b.blank()
    with b.block(function_header(function_name), "}"):
        b.line('local cur="${COMP_WORDS[COMP_CWORD]}"')
        b.line('local prev=""')
        b.line('(( COMP_CWORD > 0 )) && prev="${COMP_WORDS[COMP_CWORD-1]}"')
        b.line('local cmd_path="" candidate word i')
        b.line("COMPREPLY=()")
        b.blank()
        with b.block("for ((i = 1; i < COMP_CWORD; i++)); do", "done"):
            b.line('word="${COMP_WORDS[i]}"')
            b.line('[[ "$word" == -* ]] && continue')
            b.line('candidate="${cmd_path:+$cmd_path }$word"')
            with b.block('case "$candidate" in', "esac"):
                if paths:
                    case_arm(b, paths, ['cmd_path="$candidate"'])
                case_arm_default(b)
        b.blank()
        b.line('local opts="" value_opts="" cmds=""')
        with b.block('case "$cmd_path" in', "esac"):
            for path, node in command_paths(tree):
                case_arm(
                    b,
                    [path],
                    [
                        f"opts={word_list(all_flags(node))}",
                        f"value_opts={word_list(value_flags(node))}",
                        f"cmds={word_list([s.name for s in node.subcommands])}",
                    ],
                )
        b.blank()
        b.line('if [[ -n "$prev" && " $value_opts " == *" $prev "* ]]; then')
        with b.indented():
            b.line('COMPREPLY=($(compgen -f -- "$cur"))')
        b.line('elif [[ "$cur" == -* ]]; then')
        with b.indented():
            b.line('COMPREPLY=($(compgen -W "$opts" -- "$cur"))')
        b.line("else")
        with b.indented():
            b.line('COMPREPLY=($(compgen -W "$cmds" -- "$cur"))')
        b.line("fi")
        b.line("return 0")
    b.blank()
    b.line(f"export {active_marker_variable(cli_name)}={quote(active_marker_value('bash'))}")
    b.line(registration(function_name, cli_name))
    return b.render()
