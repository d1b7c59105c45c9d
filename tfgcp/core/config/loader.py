"""
Configuration loader — reads tfgcp.yml into the Settings model.

The config file is optional. When it is missing, defaults apply and the
project root is the current directory. Environment variables are
applied last and win over the file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from tfgcp.core.errors import TfgcpError
from tfgcp.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "tfgcp.yml"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class ConfigError(TfgcpError):
    """Raised when tfgcp.yml is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for tfgcp.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to tfgcp.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate tool settings.

    Args:
        path: Explicit path to tfgcp.yml. If None, defaults are used.
        environ: Environment to read overrides from (default: os.environ).

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    data: dict = {}

    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")

        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(loaded).__name__}")

        # The YAML may wrap everything under a "tfgcp" key or be flat
        data = loaded.get("tfgcp", loaded) if "tfgcp" in loaded else loaded

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    return apply_env_overrides(settings, os.environ if environ is None else environ)


def apply_env_overrides(settings: Settings, environ: Mapping[str, str]) -> Settings:
    """Apply the bucket variable and the DEBUG flag from the environment."""
    bucket = environ.get(settings.bucket_env_var, "").strip()
    if bucket:
        logger.debug("State bucket taken from %s", settings.bucket_env_var)
        settings.state_bucket = bucket

    if environ.get("DEBUG", "").strip().lower() in _TRUE_VALUES:
        settings.debug = True

    return settings


def project_root(config_path: Path | None) -> Path:
    """Get the project root directory from a config file path."""
    return config_path.parent.resolve() if config_path else Path.cwd().resolve()
