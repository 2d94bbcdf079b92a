"""
Configuration loader — reads the optional settings file.

Settings live in a small YAML file, validated against a Pydantic
model. The file is optional: when none is found, defaults apply.

Lookup order:
    --config flag  >  CERCES_CONFIG env var  >  ~/.config/create-cerces/config.yml
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CERCES_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/create-cerces/config.yml")


class ConfigError(Exception):
    """Raised when the settings file is unreadable or invalid."""


class Settings(BaseModel):
    """User settings for create-cerces.

    Attributes:
        resolver:      Package manager resolution strategy.
        template_ref:  Git ref used for locators without ``#ref``.
        fetch_timeout: HTTP timeout for template downloads, in seconds.
        github_token:  Optional token for GitHub downloads.
    """

    resolver: Literal["env", "probe"] = "env"
    template_ref: str | None = None
    fetch_timeout: int = Field(default=30, gt=0)
    github_token: str | None = None


def find_config_file(
    explicit: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Locate the settings file.

    An explicit path (flag or env var) is returned even if it does not
    exist, so the caller can report it. The default location is only
    returned when present.
    """
    env = os.environ if environ is None else environ
    if explicit is not None:
        return explicit
    if env.get(CONFIG_ENV_VAR):
        return Path(env[CONFIG_ENV_VAR]).expanduser()
    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.is_file() else None


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit settings path. If None, searches the usual places.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Validated Settings (defaults when no file is found).

    Raises:
        ConfigError: The file is missing (when explicit) or invalid.
    """
    env = os.environ if environ is None else environ
    path = find_config_file(path, env)

    if path is None:
        settings = Settings()
    else:
        settings = _read_settings(path)

    # GITHUB_TOKEN is honored when the file does not set one
    if settings.github_token is None and env.get("GITHUB_TOKEN"):
        settings = settings.model_copy(update={"github_token": env["GITHUB_TOKEN"]})

    return settings


def _read_settings(path: Path) -> Settings:
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
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e
