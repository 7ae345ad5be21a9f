"""
Configuration loader — reads devsetup.yml into typed settings.

Every setting has a default, so running without a config file is the
normal case. A config file can tune runner behaviour, override the
package catalog, and disable individual steps for bulk runs.
"""

from __future__ import annotations

import logging
import os
from importlib import resources
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from devsetup.core.models.packages import PackageCatalog

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "devsetup.yml"

# Catalog shipped with the package
BUNDLED_CATALOG = "packages.yml"


class ConfigError(Exception):
    """Raised when configuration is invalid or unreadable."""

    exit_code = 2


class Settings(BaseModel):
    """Installer settings, as read from devsetup.yml."""

    progress_interval: float = Field(default=0.5, gt=0)
    progress: bool | None = None        # None = only when stdout is a terminal
    shell: str = "zsh"
    local_bin: str = "~/.local/bin"
    skip_steps: list[str] = Field(default_factory=list)
    packages: PackageCatalog | None = None

    def local_bin_path(self, home: Path | None = None) -> Path:
        if self.local_bin.startswith("~"):
            return (home or Path.home()) / self.local_bin.lstrip("~").lstrip("/")
        return Path(self.local_bin)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest devsetup.yml at or above ``start_dir`` (default cwd), else the XDG one."""
    start = (start_dir or Path.cwd()).resolve()

    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILE
        if candidate.is_file():
            return candidate

    xdg = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    candidate = Path(xdg) / "devsetup" / CONFIG_FILE
    return candidate if candidate.is_file() else None


def _read_yaml(path: Path) -> dict:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_settings(path: Path | None = None, search: bool = True) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config path. If None and ``search`` is set,
            searches with ``find_config_file``.
        search: Whether to look for a config file when none is given.

    Returns:
        Validated Settings (defaults when no file exists).

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None and search:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILE)
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)
    data = _read_yaml(path)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings


def load_bundled_catalog() -> PackageCatalog:
    """The package catalog shipped in ``devsetup/data``."""
    raw = resources.files("devsetup").joinpath("data", BUNDLED_CATALOG).read_text(encoding="utf-8")
    try:
        return PackageCatalog.model_validate(yaml.safe_load(raw))
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigError(f"Bundled package catalog is invalid: {e}") from e


def load_catalog(settings: Settings) -> PackageCatalog:
    """The configured catalog, falling back to the bundled one."""
    if settings.packages is not None and settings.packages.profiles:
        return settings.packages
    return load_bundled_catalog()
