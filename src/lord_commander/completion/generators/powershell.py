"""PowerShell completion script generator.

Registers a native argument completer scoped to the CLI's executable name.
The command tree is embedded as an ordinal (case-sensitive) hashtable keyed
by space-joined command path; at completion time the script walks the
command AST up to the cursor to find the current path.
"""

from __future__ import annotations

from lord_commander.completion.generators.base import (
    ScriptBuilder,
    active_marker_value,
    active_marker_variable,
    command_paths,
    one_line,
    option_help,
    value_flags,
)
from lord_commander.models import CommandDescriptor

# PowerShell treats the typographic single quotes as quote characters too.
_SINGLE_QUOTES = frozenset("'‘’‚‛")


def quote(text: str) -> str:
    """Single-quote *text* for PowerShell by doubling every quote character."""
    return "'" + "".join(ch * 2 if ch in _SINGLE_QUOTES else ch for ch in text) + "'"


def entry(name: str, description: str) -> str:
    return f"@{{ Name = {quote(name)}; Description = {quote(one_line(description))} }}"


def array(items: list[str]) -> str:
    return "@(" + ", ".join(items) + ")"


def tree_entry(b: ScriptBuilder, path: str, node: CommandDescriptor) -> None:
    """Emit ``$commandTree['<path>'] = @{ ... }`` for one command node."""
    commands = [entry(s.name, s.description) for s in node.subcommands]
    options = [entry(flag, option_help(opt)) for opt in node.options for flag in opt.flags]
    with b.block(f"$commandTree[{quote(path)}] = @{{", "}"):
        b.line(f"Commands = {array(commands)}")
        b.line(f"Options = {array(options)}")
        b.line(f"ValueOptions = {array([quote(f) for f in value_flags(node)])}")


def registration_header(cli_name: str) -> str:
    return (
        f"Register-ArgumentCompleter -Native -CommandName {quote(cli_name)} "
        "-ScriptBlock {"
    )


def generate(tree: CommandDescriptor, cli_name: str) -> str:
    """Render a PowerShell completion script for *tree*."""
    b = ScriptBuilder()
    b.line(f"# powershell completion for {one_line(cli_name)}")
    b.blank()
    b.line(f"$env:{active_marker_variable(cli_name)} = {quote(active_marker_value('powershell'))}")
    b.blank()
    with b.block(registration_header(cli_name), "}"):
        b.line("param($wordToComplete, $commandAst, $cursorPosition)")
        b.blank()
        b.line(
            "$commandTree = [System.Collections.Hashtable]::new("
            "[System.StringComparer]::Ordinal)"
        )
        for path, node in command_paths(tree):
            tree_entry(b, path, node)
        b.blank()
        b.line("$commandPath = ''")
        b.line("$previous = ''")
        with b.block(
            "foreach ($element in ($commandAst.CommandElements | Select-Object -Skip 1)) {",
            "}",
        ):
            b.line("if ($element.Extent.EndOffset -ge $cursorPosition) { break }")
            b.line("$word = $element.ToString()")
            b.line("$previous = $word")
            b.line("if ($word.StartsWith('-')) { continue }")
            b.line('$candidate = if ($commandPath) { "$commandPath $word" } else { $word }')
            b.line("if ($commandTree.ContainsKey($candidate)) { $commandPath = $candidate }")
        b.blank()
        b.line("$node = $commandTree[$commandPath]")
        b.line("# Returning nothing falls back to path completion.")
        b.line("if ($node.ValueOptions -ccontains $previous) { return }")
        b.line("if ($wordToComplete.StartsWith('-')) {")
        with b.indented():
            b.line("$candidates = $node.Options")
        b.line("} else {")
        with b.indented():
            b.line("$candidates = $node.Commands")
        b.line("}")
        b.line("$candidates |")
        with b.indented():
            b.line(
                "Where-Object { $_.Name.StartsWith($wordToComplete, "
                "[System.StringComparison]::OrdinalIgnoreCase) } |"
            )
            with b.block("ForEach-Object {", "}"):
                b.line("$tooltip = if ($_.Description) { $_.Description } else { $_.Name }")
                b.line(
                    "[System.Management.Automation.CompletionResult]::new("
                    "$_.Name, $_.Name, 'ParameterValue', $tooltip)"
                )
    return b.render()
