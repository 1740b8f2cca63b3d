# src/agentmem/config/__init__.py
"""
Configuration module for the agentmem library.

Configuration files:
    - User config: ~/.config/agentmem/config.toml
    - Custom config: ``load_config(config_path=...)``

Environment variables:
    - Prefix: AGENTMEM_ (see ``loader.ENV_OVERRIDES``)
"""

from .loader import load_config, load_toml_config
from .models import (
    DEFAULT_SENSITIVE_PATTERNS,
    MIN_ENCRYPTION_KEY_LENGTH,
    AccessControlConfig,
    BoundedStoreConfig,
    ConfidentialityConfig,
    DurableStoreConfig,
    LoggingConfig,
    MemoryConfig,
    TieredConfig,
)

__all__ = [
    "AccessControlConfig",
    "BoundedStoreConfig",
    "ConfidentialityConfig",
    "DEFAULT_SENSITIVE_PATTERNS",
    "DurableStoreConfig",
    "LoggingConfig",
    "MIN_ENCRYPTION_KEY_LENGTH",
    "MemoryConfig",
    "TieredConfig",
    "load_config",
    "load_toml_config",
]
