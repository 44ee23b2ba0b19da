#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Optional

import logging
import sys

import yaml

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("regindex")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. REGINDEX_CONFIG environment variable
    2. ~/.regindex/ directory
    """
    # Check for environment variable override
    if 'REGINDEX_CONFIG' in os.environ:
        path = Path(os.environ['REGINDEX_CONFIG'])
        if path.exists():
            return path

    regindex_dir = Path.home() / '.regindex'
    for filename in CONFIG_FILENAMES:
        path = regindex_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return regindex_dir / 'config.json'


def read_config_file(config_path: Path) -> dict:
    """Read a JSON, TOML or YAML config file into a dict."""
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ['.yaml', '.yml']:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    # Default to JSON format
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(config_path: Optional[Path] = None):
    """Load configuration from file.

    Defaults are merged with the file contents (if any), then
    REGINDEX_* environment variables are applied on top.
    """
    if config_path is None:
        config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            file_config = read_config_file(config_path)
            # Merge file config with defaults
            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config, config_path: Optional[Path] = None):
    """Save configuration to file."""
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        if config_path.suffix.lower() == '.toml':
            logger.warning("TOML is read-only. Saving as JSON instead.")
            config_path = config_path.with_suffix('.json')
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "database": {
            "path": "~/.regindex/registry.sqlite3",
            "timeout": 5
        },
        "index": {
            "media_types": [
                "application/vnd.docker.distribution.manifest.v1+json"
            ],
            "default_limit": 20,
            "max_limit": 100
        },
        "server": {
            "host": "127.0.0.1",
            "port": 5050,
            "prefix": "/v2/_index",
            "events_path": "/events"
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def configure_logging(config: Optional[dict] = None, debug: bool = False) -> None:
    """Apply the logging section of the config to the root logger."""
    section = (config or {}).get("logging", {})
    level_name = "DEBUG" if debug else str(section.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    fmt = section.get("format")
    if fmt:
        for handler in root.handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """Recursively merge override_config into a copy of base_config."""
    merged = dict(base_config)
    for key, value in override_config.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


def _env_value(raw: str, current):
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(current, list):
        return [item.strip() for item in raw.split(',') if item.strip()]
    if raw.lower() in ('true', 'yes', 'on'):
        return True
    if raw.lower() in ('false', 'no', 'off'):
        return False
    if raw.isascii() and raw.isdigit():
        return int(raw)
    return raw


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.

    Variables follow the pattern REGINDEX_<SECTION>_<KEY>, for example
    REGINDEX_SERVER_PORT=8080 or REGINDEX_INDEX_DEFAULT_LIMIT=50. List
    values take a comma-separated string:
    REGINDEX_INDEX_MEDIA_TYPES=type/a,type/b

    Variables naming no existing section (REGINDEX_CONFIG, REGINDEX_DB)
    are left alone.
    """
    env_prefix = "REGINDEX_"

    for env_key, raw in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        section, _, key = env_key[len(env_prefix):].lower().partition('_')
        if not key or not isinstance(config.get(section), dict):
            continue

        config[section][key] = _env_value(raw, config[section].get(key))

    return config
