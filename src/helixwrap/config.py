"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for helixwrap:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.helixwrap/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Client config** -- a single JSON file (``config.json``) deserialised
  into a :class:`~helixwrap.models.ClientConfig`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the config file into the effective
  configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written game snapshot
behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from helixwrap.exceptions import ConfigError
from helixwrap.models import ClientConfig

_APP_NAME = "helixwrap"
_CONFIG_FILENAME = "config.json"
_SNAPSHOT_FILENAME = "games.json"

ENV_CLIENT_ID = "HELIXWRAP_CLIENT_ID"
ENV_CLIENT_SECRET = "HELIXWRAP_CLIENT_SECRET"
ENV_TOKEN = "HELIXWRAP_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/helixwrap/`` (default ``~/.config/helixwrap/``).
    On macOS/Windows: ``~/.helixwrap/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the persisted game snapshot. Its contents can be deleted at any
    time; the cache simply starts empty again.

    On Linux/BSD: ``$XDG_CACHE_HOME/helixwrap/`` (default ``~/.cache/helixwrap/``).
    On macOS/Windows: ``~/.helixwrap/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/helixwrap/`` (default ``~/.local/share/helixwrap/``).
    On macOS/Windows: ``~/.helixwrap/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_snapshot_path() -> Path:
    """Return the default location of the persisted game snapshot."""
    return get_cache_dir() / _SNAPSHOT_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On any failure the temp file is cleaned up and the error re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def _config_path() -> Path:
    """Path to the config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the raw config file as a dict.

    Args:
        path: Explicit config file. Defaults to ``<config_dir>/config.json``.

    Returns:
        The parsed JSON object, or an empty dict when the default file does
        not exist.

    Raises:
        ConfigError: If an explicit *path* does not exist, or the file
            cannot be read or is not a JSON object.
    """
    explicit = path is not None
    path = path or _config_path()
    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config {path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    config_path: Optional[Path] = None,
    cli_client_id: Optional[str] = None,
    cli_client_secret: Optional[str] = None,
    cli_token: Optional[str] = None,
) -> ClientConfig:
    """Resolve the effective client config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_client_id``, ``cli_client_secret``, ``cli_token``)
        2. Environment variables (``HELIXWRAP_CLIENT_ID``,
           ``HELIXWRAP_CLIENT_SECRET``, ``HELIXWRAP_TOKEN``)
        3. Config file
        4. Defaults

    Raises:
        ConfigError: If the merged values fail validation (for example no
            client id was supplied anywhere).
    """
    data = load_config_file(config_path)

    for key, env_var, cli_value in (
        ("client_id", ENV_CLIENT_ID, cli_client_id),
        ("client_secret", ENV_CLIENT_SECRET, cli_client_secret),
        ("token", ENV_TOKEN, cli_token),
    ):
        env_value = os.environ.get(env_var)
        if env_value:
            data[key] = env_value
        if cli_value is not None:
            data[key] = cli_value

    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc
