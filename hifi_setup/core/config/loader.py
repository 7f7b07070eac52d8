"""
Configuration loader — reads hifi-setup.yml into InstallerSettings.

The file is optional. Resolution order:

    explicit path (--config)  >  HIFI_SETUP_CONFIG  >  <installer dir>/hifi-setup.yml

With no file anywhere, built-in defaults are used.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from hifi_setup.core.models.settings import InstallerSettings

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "hifi-setup.yml"

# Env var naming an explicit settings file
SETTINGS_ENV = "HIFI_SETUP_CONFIG"


class ConfigError(Exception):
    """Raised when installer configuration is invalid or unreadable."""


def find_settings_file(
    installer_dir: Path | None = None,
    environ: dict[str, str] | None = None,
) -> Path | None:
    """Locate the settings file, or None when defaults apply."""
    env = os.environ if environ is None else environ
    explicit = env.get(SETTINGS_ENV)
    if explicit:
        return Path(explicit)

    candidate = (installer_dir or Path.cwd()) / SETTINGS_FILE
    if candidate.is_file():
        return candidate
    return None


def load_settings(path: Path | None = None) -> InstallerSettings:
    """Load and validate installer settings.

    Args:
        path: Settings file. None → built-in defaults.

    Returns:
        Validated InstallerSettings.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        logger.debug("No %s found, using defaults", SETTINGS_FILE)
        return InstallerSettings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading installer settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return InstallerSettings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = InstallerSettings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid installer configuration: {e}") from e

    logger.info("Loaded installer settings from %s", path)
    return settings
