"""
Configuration loader — reads vhostctl.yml into a Settings model.

This is the primary entry point for loading configuration. It reads
YAML, validates against the Pydantic schema, and returns a typed
Settings value. The value is built once per process and passed into
every component; nothing in the package reads configuration on its own.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from vhostctl.core.errors import ConfigError
from vhostctl.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "vhostctl.yml"

# Environment variable holding an explicit config path
CONFIG_ENV_VAR = "VHOSTCTL_CONFIG"


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Locate the settings file.

    ``$VHOSTCTL_CONFIG`` wins when set; otherwise search for vhostctl.yml
    starting from the given directory and walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the settings file, or None if not found.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None, *, required: bool = False) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to vhostctl.yml. If None, searches for one.
        required: Raise instead of falling back to defaults when no
            file is found.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If the file is unreadable or invalid, or missing
            while ``required``.
    """
    if path is None:
        path = find_settings_file()

    if path is None:
        if required:
            raise ConfigError(f"No {SETTINGS_FILE} found. Specify one with --config.")
        logger.info("No %s found — using built-in defaults", SETTINGS_FILE)
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "vhostctl" key or be flat
    settings_data = data.get("vhostctl", data)

    try:
        settings = Settings.model_validate(settings_data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info(
        "Loaded settings from %s (%d PHP runtimes)", path, len(settings.php_map)
    )
    return settings


def state_dir(settings: Settings, config_path: Path | None = None) -> Path:
    """Resolve the directory holding the site store and audit ledger.

    A relative ``state_dir`` is taken relative to the config file's
    directory, or to the CWD when running on defaults.
    """
    base = Path(settings.state_dir).expanduser()
    if base.is_absolute():
        return base
    root = config_path.parent.resolve() if config_path else Path.cwd()
    return root / base
