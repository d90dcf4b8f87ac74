"""Configuration loader: YAML config + .env overlay."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_config: dict[str, Any] | None = None


def load_config(config_path: str = "config.yaml", env_path: str = ".env") -> dict[str, Any]:
    """Load config.yaml and overlay environment variables from .env.

    Validates the config against ``core.config_schema`` on first load.
    """
    global _config
    if _config is not None:
        return _config

    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / env_path)

    path = project_root / config_path
    if path.exists():
        with open(path) as f:
            _config = yaml.safe_load(f) or {}
    else:
        logger.warning("Config file %s not found, using defaults", path)
        _config = {}

    from pydantic import ValidationError

    from core.config_schema import validate_config_dict
    try:
        validate_config_dict(_config)
        logger.info("Config validation passed")
    except ValidationError as e:
        # Log and continue; section getters fall back to defaults per key
        logger.error("Config validation failed: %s", e)

    return _config


def reset_config() -> None:
    """Drop the cached config so the next ``load_config`` re-reads from disk."""
    global _config
    _config = None


def get_section(name: str) -> dict[str, Any]:
    """Get one top-level section of the config (empty dict if absent)."""
    return load_config().get(name) or {}


def get_env(key: str) -> str:
    """Get an environment variable (reads from os.getenv, not cached in config)."""
    load_config()  # ensure .env is loaded
    return os.getenv(key, "")
