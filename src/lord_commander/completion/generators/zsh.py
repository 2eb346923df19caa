"""Zsh completion script generator.

The script works both ways zsh loads completions: sourced from ``~/.zshrc``
(it calls ``compdef`` itself, initialising ``compinit`` when needed) or
autoloaded from a ``site-functions`` directory as ``_<cli>`` (the
``#compdef`` tag on the first line, and the ``loadautofunc`` check at the
bottom that runs the completion immediately).

Candidates are handed to ``_describe`` as ``name:description`` entries, so a
colon inside a name is escaped as ``\\:``; every entry is single-quoted.
"""

from __future__ import annotations

import shlex

from lord_commander.completion.generators.base import (
    ScriptBuilder,
    active_marker_value,
    active_marker_variable,
    command_paths,
    function_identifier,
    one_line,
    option_help,
    subcommand_paths,
    value_flags,
)
from lord_commander.models import CommandDescriptor


def quote(text: str) -> str:
    """Single-quote *text* for zsh; embedded quotes become ``'\\''``."""
    return "'" + text.replace("'", "'\\''") + "'"


def describe_entry(name: str, description: str) -> str:
    """Quoted ``name:description`` entry for ``_describe``."""
    entry = name.replace("\\", "\\\\").replace(":", "\\:")
    if description:
        entry = f"{entry}:{one_line(description)}"
    return quote(entry)


def array(items: list[str]) -> str:
    return "(" + " ".join(items) + ")"


def case_arm(b: ScriptBuilder, patterns: list[str], body: list[str]) -> None:
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


def registration(b: ScriptBuilder, function_name: str, cli_name: str) -> None:
    """Run immediately when autoloaded, otherwise register with ``compdef``."""
    b.line('if [[ "${zsh_eval_context[-1]}" == loadautofunc ]]; then')
    with b.indented():
        b.line(f'{function_name} "$@"')
    b.line("else")
    with b.indented():
        b.line("if (( ! ${+functions[compdef]} )); then")
        with b.indented():
            b.line("autoload -Uz compinit && compinit")
        b.line("fi")
        b.line(f"compdef {function_name} {shlex.quote(cli_name)}")
    b.line("fi")


def generate(tree: CommandDescriptor, cli_name: str) -> str:
    """Render a zsh completion script for *tree*."""
    function_name = f"_{function_identifier(cli_name)}_completion"
    paths = subcommand_paths(tree)

    b = ScriptBuilder()
    b.line(f"#compdef {shlex.quote(cli_name)}")
    b.line(f"# zsh completion for {one_line(cli_name)}")
    b.blank()
    with b.block(function_header(function_name), "}"):
        b.line('local cur="${words[CURRENT]}"')
        b.line('local prev="${words[CURRENT-1]}"')
        b.line('local cmd_path="" candidate word i')
        b.line("local -a opts cmds value_opts")
        b.blank()
        with b.block("for ((i = 2; i < CURRENT; i++)); do", "done"):
            b.line('word="${words[i]}"')
            b.line('[[ "$word" == -* ]] && continue')
            b.line('candidate="${cmd_path:+$cmd_path }$word"')
            with b.block('case "$candidate" in', "esac"):
                if paths:
                    case_arm(b, paths, ['cmd_path="$candidate"'])
                case_arm_default(b)
        b.blank()
        with b.block('case "$cmd_path" in', "esac"):
            for path, node in command_paths(tree):
                opts = [
                    describe_entry(flag, option_help(opt))
                    for opt in node.options
                    for flag in opt.flags
                ]
                cmds = [describe_entry(s.name, s.description) for s in node.subcommands]
                case_arm(
                    b,
                    [path],
                    [
                        f"opts={array(opts)}",
                        f"value_opts={array([quote(f) for f in value_flags(node)])}",
                        f"cmds={array(cmds)}",
                    ],
                )
        b.blank()
        b.line("if (( ${value_opts[(Ie)$prev]} )); then")
        with b.indented():
            b.line("_files")
        b.line('elif [[ "$cur" == -* ]]; then')
        with b.indented():
            b.line("_describe -t options 'option' opts")
        b.line("else")
        with b.indented():
            b.line("_describe -t commands 'command' cmds")
        b.line("fi")
    b.blank()
    b.line(f"export {active_marker_variable(cli_name)}={quote(active_marker_value('zsh'))}")
    b.blank()
    registration(b, function_name, cli_name)
    return b.render()
