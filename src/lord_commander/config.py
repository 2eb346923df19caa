"""Configuration management with XDG paths and precedence resolution.

This module handles the persistent per-user configuration of a CLI built
with lord_commander:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.<cli-name>/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~lord_commander.models.GlobalConfig`
  JSON file storing the default shell, default installation scope, and
  autocomplete preferences.
* **Precedence resolution** -- :func:`resolve_shell_override` merges the
  ``--shell`` flag, the ``<CLI>_SHELL`` environment variable, and the
  configured default shell.

Writes go through :func:`lord_commander.fs.atomic_write`.
"""

from __future__ import annotations

import json
import os
import platform
import re
from pathlib import Path
from typing import Mapping, Optional

from lord_commander.exceptions import ConfigError
from lord_commander.fs import atomic_write
from lord_commander.models import GlobalConfig

_CONFIG_FILENAME = "config.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir(app_name: str) -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{app_name}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir(app_name: str) -> Path:
    """Return the configuration directory for *app_name*.

    On Linux/BSD: ``$XDG_CONFIG_HOME/<app>/`` (default ``~/.config/<app>/``).
    On macOS/Windows: ``~/.<app>/``.

    The directory is not created here; saving the config creates it.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / app_name
    return _fallback_base_dir(app_name)


def get_data_dir(app_name: str) -> Path:
    """Return the data directory (crash logs) for *app_name*, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/<app>/`` (default ``~/.local/share/<app>/``).
    On macOS/Windows: ``~/.<app>/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / app_name
    else:
        path = _fallback_base_dir(app_name) / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Global config ---


def _global_config_path(app_name: str) -> Path:
    return get_config_dir(app_name) / _CONFIG_FILENAME


def load_global_config(app_name: str) -> GlobalConfig:
    """Load the global configuration for *app_name*.

    Returns:
        The deserialised :class:`~lord_commander.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but cannot be read, contains invalid
            JSON, or fails Pydantic validation.
    """
    path = _global_config_path(app_name)
    if not path.is_file():
        return GlobalConfig()
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"Cannot read global config at {path}: {exc.strerror or exc}") from exc
    try:
        data = json.loads(raw)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(app_name: str, config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json", exclude_none=True)
    atomic_write(_global_config_path(app_name), json.dumps(data, indent=2) + "\n")


# --- Precedence ---


def shell_env_var(app_name: str) -> str:
    """Return the environment variable that overrides shell detection.

    Example::

        >>> shell_env_var("my-cli")
        'MY_CLI_SHELL'
    """
    return re.sub(r"[^A-Za-z0-9]", "_", app_name).upper() + "_SHELL"


def resolve_shell_override(
    app_name: str,
    flag: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    config: Optional[GlobalConfig] = None,
) -> Optional[str]:
    """Return the explicit shell name to use, or ``None`` to auto-detect.

    Precedence (highest first): the ``--shell`` flag, the ``<CLI>_SHELL``
    environment variable, the ``default_shell`` of the global config.
    """
    if flag:
        return flag
    env = os.environ if environ is None else environ
    from_env = env.get(shell_env_var(app_name), "").strip()
    if from_env:
        return from_env
    if config is not None and config.default_shell is not None:
        return config.default_shell.value
    return None
