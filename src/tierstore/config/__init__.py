# src/tierstore/config/__init__.py
"""
Configuration module for the TierStore library.

Configuration files:
    - default_config.toml: Packaged defaults
    - Custom config: Specified via TierStore.create(config_file_path=...)

Environment variables:
    - Prefix: TIERSTORE
    - Nested keys use double underscores: TIERSTORE__DATABASE__DB_PATH
"""

from .loader import load_config
from .models import (
    CacheTierConfig,
    DatabaseTierConfig,
    FileTierConfig,
    LoggingConfig,
    OrchestratorConfig,
    ServerConfig,
    TierPriority,
    TierStoreConfig,
)

__all__ = [
    "load_config",
    "CacheTierConfig",
    "DatabaseTierConfig",
    "FileTierConfig",
    "LoggingConfig",
    "OrchestratorConfig",
    "ServerConfig",
    "TierPriority",
    "TierStoreConfig",
]
