"""Fish completion script generator.

Fish has no completion functions in the bash sense: completions are a list
of ``complete`` declarations, each guarded by a condition. Two helper
functions compute the command path typed so far; every subcommand and
option is then declared under the condition ``__<cli>_at_path '<path>'``.
"""

from __future__ import annotations

import re

from lord_commander.completion.generators.base import (
    ScriptBuilder,
    active_marker_value,
    active_marker_variable,
    command_paths,
    function_identifier,
    one_line,
    option_help,
    subcommand_paths,
)
from lord_commander.models import CommandDescriptor, OptionDescriptor

_PLAIN_WORD = re.compile(r"[A-Za-z0-9_\-.,:/@%+=]+")


def quote(text: str) -> str:
    """Single-quote *text* for fish, where only ``\\`` and ``'`` need escaping."""
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def argument_word(word: str) -> str:
    """Quote a word for ``complete -a``, whose value fish expands again."""
    if _PLAIN_WORD.fullmatch(word):
        return quote(word)
    return quote(quote(word))


def path_condition(helper: str, path: str) -> str:
    return quote(f"{helper} {quote(path)}")


def flag_switches(flag: str) -> str:
    """Translate ``-v`` / ``--verbose`` / ``-verbose`` into ``complete`` switches."""
    if flag.startswith("--"):
        return f"-l {quote(flag[2:])}"
    if len(flag) == 2:
        return f"-s {quote(flag[1:])}"
    return f"-o {quote(flag.lstrip('-'))}"


def option_line(cli: str, condition: str, option: OptionDescriptor) -> str:
    parts = [f"complete -c {cli} -n {condition}"]
    parts.extend(flag_switches(flag) for flag in option.flags if flag.startswith("-"))
    if option.takes_value:
        parts.append("-r -F")
    description = option_help(option)
    if description:
        parts.append(f"-d {quote(description)}")
    return " ".join(parts)


def subcommand_line(cli: str, condition: str, node: CommandDescriptor) -> str:
    line = f"complete -c {cli} -n {condition} -a {argument_word(node.name)}"
    if node.description:
        line += f" -d {quote(one_line(node.description))}"
    return line


def function_header(name: str) -> str:
    return f"function {name}"


def generate(tree: CommandDescriptor, cli_name: str) -> str:
    """Render a fish completion script for *tree*."""
    ident = function_identifier(cli_name)
    path_fn = f"__{ident}_cmd_path"
    at_path_fn = f"__{ident}_at_path"
    cli = quote(cli_name)
    known = " ".join(quote(p) for p in subcommand_paths(tree))

    b = ScriptBuilder()
    b.line(f"# fish completion for {one_line(cli_name)}")
    b.blank()
    with b.block(function_header(path_fn), "end"):
        b.line("set -l tokens (commandline -opc)")
        b.line("set -l cmd_path")
        with b.block("for word in $tokens[2..-1]", "end"):
            b.line("string match -q -- '-*' $word; and continue")
            b.line("set -l candidate (string join ' ' $cmd_path $word)")
            with b.block(f"if contains -- $candidate {known}".rstrip(), "end"):
                b.line("set cmd_path $cmd_path $word")
        b.line("string join ' ' $cmd_path")
    b.blank()
    with b.block(function_header(at_path_fn), "end"):
        b.line(f"set -l current ({path_fn})")
        b.line('test "$current" = "$argv[1]"')
    b.blank()
    b.line(f"set -gx {active_marker_variable(cli_name)} {quote(active_marker_value('fish'))}")
    b.blank()
    b.line(f"complete -c {cli} -f")
    for path, node in command_paths(tree):
        condition = path_condition(at_path_fn, path)
        for child in node.subcommands:
            b.line(subcommand_line(cli, condition, child))
        for option in node.options:
            b.line(option_line(cli, condition, option))
    return b.render()
