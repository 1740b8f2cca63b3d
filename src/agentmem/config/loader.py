# src/agentmem/config/loader.py
"""
Configuration loading for agentmem.

Configuration is loaded and merged in order:
    1. Model defaults
    2. TOML config file
    3. ``AGENTMEM_*`` environment variables
    4. Runtime overrides
"""

import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from ..exceptions import ConfigError
from .models import MemoryConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "agentmem" / "config.toml"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "yes", "1", "on")


# Environment variable -> (section, key, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "AGENTMEM_MAX_MESSAGES": ("bounded", "max_messages", int),
    "AGENTMEM_MAX_CONVERSATIONS": ("bounded", "max_conversations", int),
    "AGENTMEM_DURABLE_ENABLED": ("durable", "enabled", _parse_bool),
    "AGENTMEM_DURABLE_PATH": ("durable", "path", str),
    "AGENTMEM_SYNC_INTERVAL_MS": ("tiered", "sync_interval_ms", int),
    "AGENTMEM_ENCRYPTION_KEY": ("confidentiality", "encryption_key", str),
    "AGENTMEM_REDACTION_ENABLED": ("confidentiality", "redaction_enabled", _parse_bool),
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_toml_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the raw configuration dictionary from a TOML file.

    A missing file yields an empty dictionary; a malformed one is an error.

    Args:
        config_path: Path to the TOML file (default: ~/.config/agentmem/config.toml).

    Raises:
        ConfigError: If the file exists but cannot be parsed.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    path = path.expanduser()
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read config file '{path}': {e}") from e

    logger.debug(f"Loaded agentmem config from {path}")
    # Allow both a dedicated file and an [agentmem] table in a shared one.
    return data.get("agentmem", data)


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply ``AGENTMEM_*`` environment variables on top of ``config``.

    Raises:
        ConfigError: If a variable cannot be converted to its target type.
    """
    result = copy.deepcopy(config)
    for env_name, (section, key, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            value = convert(raw)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {env_name}: {raw!r}") from e
        result.setdefault(section, {})[key] = value
        if env_name == "AGENTMEM_DURABLE_PATH":
            result[section].setdefault("enabled", True)
    return result


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> MemoryConfig:
    """
    Load the complete agentmem configuration.

    Args:
        config_path: Optional path to a TOML config file.
        overrides: Optional runtime overrides, deep-merged last.

    Returns:
        A validated MemoryConfig.

    Raises:
        ConfigError: If the merged configuration does not validate.
    """
    raw = load_toml_config(config_path)
    raw = apply_env_overrides(raw)
    if overrides:
        raw = _deep_merge(raw, overrides)

    try:
        return MemoryConfig.from_dict(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid agentmem configuration: {e}") from e
