"""Tests for the per-shell completion script generators.

Covers:
- Each dialect registers for the exact CLI name
- Commands and options appear in declaration order
- Description text with quotes, ``$``, backticks and brackets is escaped
- Output is deterministic
- Generated bash scripts parse and complete in a real bash
- An empty tree still renders a registration
- The active-session marker is exported
- Identifier encoding and the dispatcher
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from lord_commander.completion import generators
from lord_commander.completion.generators import bash, fish, powershell, zsh
from lord_commander.completion.generators.base import (
    ScriptBuilder,
    active_marker_value,
    active_marker_variable,
    function_identifier,
)
from lord_commander.exceptions import UnsupportedShellError
from lord_commander.models import CommandDescriptor, OptionDescriptor, ShellKind

TRICKY_HELP = "Run `it` with $HOME and 'quotes' [x]"


@pytest.fixture
def tricky_tree() -> CommandDescriptor:
    return CommandDescriptor(
        name="my-cli",
        subcommands=(
            CommandDescriptor(
                name="run",
                description=TRICKY_HELP,
                options=(
                    OptionDescriptor(
                        flags=("--name",),
                        takes_value=True,
                        description="Say \"hi\" it's $USER",
                    ),
                ),
            ),
        ),
    )


class TestBase:
    @pytest.mark.parametrize(
        "name, expected",
        [("test-cli", "test_cli"), ("my.tool", "my_tool"), ("9lives", "_9lives"), ("ok_1", "ok_1")],
    )
    def test_function_identifier(self, name: str, expected: str) -> None:
        assert function_identifier(name) == expected

    def test_active_marker(self) -> None:
        assert active_marker_variable("test-cli") == "_TEST_CLI_COMPLETION"
        assert active_marker_value("zsh") == "zsh:1"

    def test_builder_indents_blocks(self) -> None:
        b = ScriptBuilder()
        with b.block("f() {", "}"):
            b.line("echo hi")
            b.blank()
        assert b.render() == "f() {\n    echo hi\n\n}\n"


class TestDispatcher:
    @pytest.mark.parametrize("shell", list(ShellKind))
    def test_deterministic(self, sample_tree: CommandDescriptor, shell: ShellKind) -> None:
        assert generators.generate(sample_tree, shell) == generators.generate(sample_tree, shell)

    @pytest.mark.parametrize("shell", list(ShellKind))
    def test_empty_tree_still_registers(self, empty_tree: CommandDescriptor, shell: ShellKind) -> None:
        script = generators.generate(empty_tree, shell)
        assert script.endswith("\n")
        assert "test-cli" in script
        assert active_marker_variable("test-cli") in script

    @pytest.mark.parametrize("shell", list(ShellKind))
    def test_exports_active_marker(self, sample_tree: CommandDescriptor, shell: ShellKind) -> None:
        script = generators.generate(sample_tree, shell)
        assert "_TEST_CLI_COMPLETION" in script
        assert f"{shell.value}:1" in script

    def test_accepts_shell_names(self, sample_tree: CommandDescriptor) -> None:
        assert generators.generate(sample_tree, "zsh") == zsh.generate(sample_tree, "test-cli")

    def test_unknown_shell(self, sample_tree: CommandDescriptor) -> None:
        with pytest.raises(UnsupportedShellError):
            generators.generate(sample_tree, "tcsh")

    def test_cli_name_override(self, sample_tree: CommandDescriptor) -> None:
        script = generators.generate(sample_tree, ShellKind.BASH, cli_name="other")
        assert "complete -F _other_completion other" in script


class TestBash:
    def test_registration(self, sample_tree: CommandDescriptor) -> None:
        script = bash.generate(sample_tree, "test-cli")
        assert "_test_cli_completion() {" in script
        assert script.rstrip().endswith("complete -F _test_cli_completion test-cli")

    def test_command_paths_and_words(self, sample_tree: CommandDescriptor) -> None:
        script = bash.generate(sample_tree, "test-cli")
        assert "'deploy'|'config'|'config set'|'config get')" in script
        assert "cmds='deploy config'" in script
        assert "cmds='set get'" in script
        assert "opts='--verbose -v'" in script
        assert "value_opts='--env -e'" in script

    def test_descriptions_are_not_emitted(self, tricky_tree: CommandDescriptor) -> None:
        script = bash.generate(tricky_tree, "my-cli")
        assert "$HOME" not in script
        assert "value_opts='--name'" in script

    def test_compgen_words_are_escaped(self) -> None:
        assert bash.word_list(["a b", "x$y", "it's"]) == "'a\\ b x\\$y it\\'\\''s'"

    def test_quote(self) -> None:
        assert bash.quote("it's") == "'it'\\''s'"


_DRIVER = """
source "$1"
shift
COMP_WORDS=("$@")
COMP_CWORD=$(( $# - 1 ))
"$FUNC"
for reply in "${COMPREPLY[@]}"; do
    printf '%s\\n' "$reply"
done
"""


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not installed")
class TestBashScriptRuns:
    """Load generated scripts into a real bash and drive the completion function."""

    def _write(self, tmp_path: Path, tree: CommandDescriptor, cli_name: str) -> Path:
        path = tmp_path / f"{cli_name}.bash"
        path.write_text(bash.generate(tree, cli_name))
        return path

    def _complete(self, tmp_path: Path, script: Path, cli_name: str, *words: str) -> list[str]:
        result = subprocess.run(
            ["bash", "--norc", "--noprofile", "-c", _DRIVER, "driver", str(script), cli_name, *words],
            capture_output=True,
            text=True,
            cwd=tmp_path,
            env={"PATH": os.environ.get("PATH", ""), "FUNC": f"_{function_identifier(cli_name)}_completion"},
            check=True,
        )
        return result.stdout.splitlines()

    @pytest.mark.parametrize("fixture", ["sample_tree", "tricky_tree", "empty_tree"])
    def test_syntax_is_valid(self, request: pytest.FixtureRequest, tmp_path: Path, fixture: str) -> None:
        script = self._write(tmp_path, request.getfixturevalue(fixture), "test-cli")
        result = subprocess.run(["bash", "-n", str(script)], capture_output=True, text=True)
        assert result.returncode == 0, result.stderr

    def test_root_commands(self, tmp_path: Path, sample_tree: CommandDescriptor) -> None:
        script = self._write(tmp_path, sample_tree, "test-cli")
        assert self._complete(tmp_path, script, "test-cli", "") == ["deploy", "config"]
        assert self._complete(tmp_path, script, "test-cli", "de") == ["deploy"]
        assert self._complete(tmp_path, script, "test-cli", "-") == ["--verbose", "-v"]

    def test_command_options(self, tmp_path: Path, sample_tree: CommandDescriptor) -> None:
        script = self._write(tmp_path, sample_tree, "test-cli")
        assert self._complete(tmp_path, script, "test-cli", "deploy", "--e") == ["--env"]
        assert self._complete(tmp_path, script, "test-cli", "-v", "deploy", "--d") == ["--dry-run"]

    def test_option_value_completes_files(self, tmp_path: Path, sample_tree: CommandDescriptor) -> None:
        script = self._write(tmp_path, sample_tree, "test-cli")
        (tmp_path / "staging.env").write_text("")
        assert self._complete(tmp_path, script, "test-cli", "deploy", "-e", "sta") == ["staging.env"]

    def test_nested_subcommands(self, tmp_path: Path, sample_tree: CommandDescriptor) -> None:
        script = self._write(tmp_path, sample_tree, "test-cli")
        assert self._complete(tmp_path, script, "test-cli", "config", "") == ["set", "get"]
        assert self._complete(tmp_path, script, "test-cli", "config", "g") == ["get"]

    def test_empty_tree_offers_nothing(self, tmp_path: Path, empty_tree: CommandDescriptor) -> None:
        script = self._write(tmp_path, empty_tree, "test-cli")
        assert self._complete(tmp_path, script, "test-cli", "") == []

    def test_words_are_never_evaluated(self, tmp_path: Path) -> None:
        flag = "--$(touch PWNED)"
        tree = CommandDescriptor(
            name="my-cli",
            subcommands=(
                CommandDescriptor(
                    name="run",
                    description=TRICKY_HELP,
                    options=(OptionDescriptor(flags=(flag, "--x`touch PWNED`")),),
                ),
            ),
        )
        script = self._write(tmp_path, tree, "my-cli")
        assert self._complete(tmp_path, script, "my-cli", "run", "--$") == [flag]
        assert self._complete(tmp_path, script, "my-cli", "run", "--x") == ["--x`touch PWNED`"]
        assert not (tmp_path / "PWNED").exists()


class TestZsh:
    def test_header_and_registration(self, sample_tree: CommandDescriptor) -> None:
        script = zsh.generate(sample_tree, "test-cli")
        assert script.startswith("#compdef test-cli\n")
        assert "compdef _test_cli_completion test-cli" in script
        assert "loadautofunc" in script

    def test_describe_entries(self, sample_tree: CommandDescriptor) -> None:
        script = zsh.generate(sample_tree, "test-cli")
        assert "cmds=('deploy:Deploy the application.' 'config:Manage configuration.')" in script
        assert "'--env:Target environment.' '-e:Target environment.'" in script
        assert "value_opts=('--env' '-e')" in script

    def test_escaping(self, tricky_tree: CommandDescriptor) -> None:
        script = zsh.generate(tricky_tree, "my-cli")
        assert "'run:Run `it` with $HOME and '\\''quotes'\\'' [x]'" in script

    def test_colon_in_name(self) -> None:
        assert zsh.describe_entry("a:b", "desc") == "'a\\:b:desc'"


class TestFish:
    def test_registration(self, sample_tree: CommandDescriptor) -> None:
        script = fish.generate(sample_tree, "test-cli")
        assert "function __test_cli_cmd_path" in script
        assert "complete -c 'test-cli' -f" in script

    def test_subcommands_and_options(self, sample_tree: CommandDescriptor) -> None:
        script = fish.generate(sample_tree, "test-cli")
        root = "'__test_cli_at_path \\'\\''"
        assert f"complete -c 'test-cli' -n {root} -a 'deploy' -d 'Deploy the application.'" in script
        deploy = "'__test_cli_at_path \\'deploy\\''"
        assert (
            f"complete -c 'test-cli' -n {deploy} -l 'env' -s 'e' -r -F -d 'Target environment.'"
            in script
        )
        assert script.index("-a 'deploy'") < script.index("-a 'config'")

    def test_escaping(self, tricky_tree: CommandDescriptor) -> None:
        script = fish.generate(tricky_tree, "my-cli")
        assert "-d 'Run `it` with $HOME and \\'quotes\\' [x]'" in script
        assert "-d 'Say \"hi\" it\\'s $USER'" in script

    def test_argument_words_are_quoted_twice_when_needed(self) -> None:
        assert fish.argument_word("deploy") == "'deploy'"
        assert fish.argument_word("a b") == "'\\'a b\\''"

    @pytest.mark.parametrize(
        "flag, expected",
        [("-v", "-s 'v'"), ("--verbose", "-l 'verbose'"), ("-verbose", "-o 'verbose'")],
    )
    def test_flag_switches(self, flag: str, expected: str) -> None:
        assert fish.flag_switches(flag) == expected


class TestPowerShell:
    def test_registration_scoped_to_cli(self, sample_tree: CommandDescriptor) -> None:
        script = powershell.generate(sample_tree, "test-cli")
        assert "Register-ArgumentCompleter -Native -CommandName 'test-cli' -ScriptBlock {" in script
        assert "$env:_TEST_CLI_COMPLETION = 'powershell:1'" in script

    def test_command_tree_entries(self, sample_tree: CommandDescriptor) -> None:
        script = powershell.generate(sample_tree, "test-cli")
        assert "$commandTree['config set'] = @{" in script
        assert "@{ Name = 'deploy'; Description = 'Deploy the application.' }" in script
        assert "ValueOptions = @('--env', '-e')" in script

    def test_escaping(self, tricky_tree: CommandDescriptor) -> None:
        script = powershell.generate(tricky_tree, "my-cli")
        assert "Description = 'Run `it` with $HOME and ''quotes'' [x]'" in script

    def test_typographic_quotes_are_doubled(self) -> None:
        assert powershell.quote("it’s") == "'it’’s'"
