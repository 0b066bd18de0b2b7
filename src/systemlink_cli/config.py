"""Configuration file discovery, profile lookup and settings resolution.

This module handles all persistent configuration for systemlink-cli:

* **Config file** -- ``systemlink.yaml``, a list of named profiles parsed
  into :class:`~systemlink_cli.models.ConfigFile`. See
  :func:`config_search_paths` for where it is looked up.
* **Profiles** -- :func:`find_profile` selects one profile by name (default
  ``default``) and turns it into :class:`~systemlink_cli.models.Settings`.
* **Precedence resolution** -- :func:`resolve_settings` overlays values the
  user passed explicitly (flags or environment variables) on the profile.
* **Directories** -- the models directory the CLI is generated from and the
  data directory used for crash logs.
"""

from __future__ import annotations

import os
import platform
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from systemlink_cli.exceptions import ConfigError
from systemlink_cli.models import ConfigFile, ProfileConfig, Settings

_APP_NAME = "systemlink"
CONFIG_FILENAME = "systemlink.yaml"
MODELS_DIRNAME = "models"
DEFAULT_PROFILE = "default"

CONFIG_ENV_VAR = "SYSTEMLINK_CONFIG"
MODELS_DIR_ENV_VAR = "SYSTEMLINK_MODELS_DIR"


# --- Directories ---


def get_executable_dir() -> Path:
    """Return the directory containing the running ``systemlink`` script."""
    return Path(sys.argv[0]).resolve().parent


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_models_dir() -> Path:
    """Return the directory holding the Swagger models.

    ``$SYSTEMLINK_MODELS_DIR`` when set, otherwise ``models/`` next to the
    executable.
    """
    env_value = os.environ.get(MODELS_DIR_ENV_VAR, "")
    if env_value:
        return Path(env_value)
    return get_executable_dir() / MODELS_DIRNAME


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/systemlink/`` (default
    ``~/.local/share/systemlink/``). Elsewhere: ``~/.systemlink/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Config file ---


def config_search_paths() -> list[Path]:
    """Return candidate config file locations, highest priority first.

    1. ``$SYSTEMLINK_CONFIG`` (an explicit file path)
    2. ``~/systemlink.yaml``
    3. ``$XDG_CONFIG_HOME/systemlink/systemlink.yaml``
    4. ``systemlink.yaml`` next to the executable
    """
    paths: list[Path] = []
    explicit = os.environ.get(CONFIG_ENV_VAR, "")
    if explicit:
        paths.append(Path(explicit))
    paths.append(Path.home() / CONFIG_FILENAME)
    paths.append(_xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME / CONFIG_FILENAME)
    paths.append(get_executable_dir() / CONFIG_FILENAME)
    return paths


def find_config_file() -> Optional[Path]:
    """Return the first existing config file, or ``None``."""
    for path in config_search_paths():
        if path.is_file():
            return path
    return None


def load_config(path: Optional[Path] = None) -> ConfigFile:
    """Load and validate a config file.

    Args:
        path: Explicit file to read. When omitted, :func:`find_config_file`
            decides; without any config file an empty configuration is
            returned.

    Returns:
        The parsed configuration. Relative ``ssh-key`` paths are resolved
        against the directory containing the file.

    Raises:
        ConfigError: If the file cannot be read or is not valid YAML of the
            expected shape.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            return ConfigFile()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Error reading yaml: {exc}") from exc

    if raw is None:
        return ConfigFile()
    try:
        config = ConfigFile.model_validate(raw)
    except PydanticValidationError as exc:
        raise ConfigError(f"Error reading yaml: {exc}") from exc

    return _resolve_key_paths(config, path.parent)


def _resolve_key_paths(config: ConfigFile, base_dir: Path) -> ConfigFile:
    profiles: list[ProfileConfig] = []
    for profile in config.profiles:
        if profile.ssh_key and not Path(profile.ssh_key).is_absolute():
            profile = profile.model_copy(update={"ssh_key": str(base_dir / profile.ssh_key)})
        profiles.append(profile)
    return config.model_copy(update={"profiles": profiles})


# --- Profiles and precedence ---


def find_profile(config: ConfigFile, name: str = "") -> Settings:
    """Return the settings of the profile called *name*.

    An empty *name* selects ``default``. An unknown profile yields empty
    settings rather than an error, so a CLI without any configuration still
    works from flags and environment variables alone.
    """
    name = name or DEFAULT_PROFILE
    for profile in config.profiles:
        if profile.name == name:
            return profile.to_settings()
    return Settings()


def resolve_settings(
    config: ConfigFile,
    profile: str = "",
    overrides: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """Merge explicitly supplied values over the selected profile.

    Precedence (highest first): command-line flags and environment variables
    (*overrides*, containing only the values the user actually supplied),
    then the profile from the config file.

    Args:
        config: The loaded configuration file.
        profile: Profile name; empty selects ``default``.
        overrides: ``Settings`` field name to value for explicitly supplied
            options.
    """
    settings = find_profile(config, profile)
    if overrides:
        settings = settings.model_copy(update=dict(overrides))
    return settings
