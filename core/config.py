# core/config.py
"""
Loads extractor defaults from ``configs/extractor.yaml`` and validates them
with Pydantic models.  The file may be missing, in which case the built-in
defaults of ``ExtractOptions`` apply.

Public API:
* ``get_settings()`` – cached, validated ``Settings`` for this process.
* ``load_settings(path)`` – uncached load of an explicit file (CLI ``--config``).
* ``reset_settings_cache()`` – forget the cached settings (tests).
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field

from models.extract_options import ExtractOptions


class LoggingConfig(BaseModel):
    """Sink level used by ``core.logging.configure_logging``."""
    level: str = "WARNING"


class Settings(BaseModel):
    """Top-level container – extractor defaults plus logging."""
    extractor: ExtractOptions = Field(default_factory=ExtractOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ----------------------------------------------------------------------
# Internal helpers & caching
# ----------------------------------------------------------------------
# Resolve the path relative to this file (one level up → project root)
CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "extractor.yaml"

# Environment variable that points at an alternative YAML file
CONFIG_ENV_VAR = "ARTICLE_SCRAPER_CONFIG"

# Simple in-process cache so the YAML is read/validated only once per process
_cached_settings: Optional[Settings] = None


def _config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else CONFIG_PATH


def _load_yaml(path: Path) -> dict:
    """Read the YAML file; a missing file yields an empty mapping."""
    if not path.exists():
        logger.debug(f"No config file at {path}; using built-in defaults")
        return {}
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return raw


def load_settings(path: Path) -> Settings:
    """
    Parse *path* and validate it against ``Settings``.  Any validation
    problem raises ``ValidationError`` naming the offending field.
    """
    return Settings(**_load_yaml(Path(path)))


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------
def get_settings() -> Settings:
    """Return the cached, **validated** settings for this process."""
    global _cached_settings
    if _cached_settings is None:
        path = _config_path()
        _cached_settings = load_settings(path)
        logger.debug(f"Loaded extractor settings from {path}")
    return _cached_settings


def reset_settings_cache() -> None:
    global _cached_settings
    _cached_settings = None
