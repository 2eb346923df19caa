"""Shared test fixtures for lord_commander.

Provides a sample Typer application and its descriptor tree, fake shell
environments rooted in ``tmp_path``, isolated config directories, output
state management, and a CLI runner. No fixture touches the real home
directory or system completion directories.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from lord_commander.completion.detect import ShellEnvironment
from lord_commander.completion.tree import build_command_tree
from lord_commander.models import CommandDescriptor
from lord_commander.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Sample command set
# ---------------------------------------------------------------------------


def make_sample_app() -> typer.Typer:
    """A small CLI: ``deploy``, a ``config`` group with ``set``/``get``, a hidden command."""
    app = typer.Typer(name="test-cli", add_completion=False)

    @app.callback()
    def main(
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    ) -> None:
        """Test CLI."""

    @app.command("deploy")
    def deploy(
        target: str = typer.Argument(..., help="Where to deploy."),
        env: str = typer.Option("dev", "--env", "-e", help="Target environment."),
        dry_run: bool = typer.Option(False, "--dry-run", help="Preview only."),
    ) -> None:
        """Deploy the application."""

    @app.command("secret", hidden=True)
    def secret() -> None:
        """Not shown anywhere."""

    config_app = typer.Typer(help="Manage configuration.")

    @config_app.command("set")
    def config_set(key: str, value: str) -> None:
        """Set a configuration value."""

    @config_app.command("get")
    def config_get(key: str) -> None:
        """Read a configuration value."""

    app.add_typer(config_app, name="config")
    return app


@pytest.fixture
def sample_app() -> typer.Typer:
    return make_sample_app()


@pytest.fixture
def sample_tree(sample_app: typer.Typer) -> CommandDescriptor:
    """Descriptor tree of :func:`make_sample_app`, named ``test-cli``."""
    return build_command_tree(sample_app, name="test-cli")


@pytest.fixture
def empty_tree() -> CommandDescriptor:
    return CommandDescriptor(name="test-cli")


# ---------------------------------------------------------------------------
# Fake environments
# ---------------------------------------------------------------------------


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def system_root(tmp_path: Path) -> Path:
    path = tmp_path / "root"
    path.mkdir()
    return path


@pytest.fixture
def posix_env(home: Path) -> ShellEnvironment:
    """A Linux environment with no shell signals and HOME in tmp_path."""
    return ShellEnvironment(variables={"HOME": str(home)}, platform="linux")


@pytest.fixture
def isolated_home(tmp_path: Path, home: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME, XDG directories and ``Path.home()`` into tmp_path.

    Clears shell signals and completion markers inherited from the real
    environment, and changes the working directory to tmp_path.

    Returns:
        The fake home directory.
    """
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.setattr(
        "lord_commander.completion.detect._read_parent_process_name", lambda: None
    )
    monkeypatch.setattr("lord_commander.config._is_xdg_platform", lambda: True)
    for var in ["SHELL", "TEST_CLI_SHELL", "LORD_COMMANDER_SHELL",
                "_TEST_CLI_COMPLETION", "_LORD_COMMANDER_COMPLETION"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return home


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
