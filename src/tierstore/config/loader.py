# src/tierstore/config/loader.py
"""
Configuration loading for TierStore.

Sources are merged by ``pydantic-settings`` in increasing order of precedence:

1. the packaged ``default_config.toml``;
2. an optional user TOML file;
3. environment variables ``{PREFIX}__SECTION__KEY=value``, validated against
   the type of the field they set;
4. an explicit overrides dictionary (nested, or with dotted keys such as
   ``"file.base_directory"``).
"""

import logging
import os
import pathlib
import tomllib
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError
from pydantic_settings import SettingsError

from ..exceptions import ConfigError
from .models import DEFAULT_CONFIG_FILE, TierStoreConfig

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX = "TIERSTORE"
ENV_NESTED_DELIMITER = "__"


def nest_overrides(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Turn dotted keys (``"file.base_directory"``) into nested dictionaries."""
    nested: Dict[str, Any] = {}
    for key, value in overrides.items():
        *parents, leaf = key.split(".")
        node = nested
        for part in parents:
            node = node.setdefault(part, {})
        if isinstance(value, Mapping) and isinstance(node.get(leaf), dict):
            node[leaf].update(nest_overrides(value))
        elif isinstance(value, Mapping):
            node[leaf] = nest_overrides(value)
        else:
            node[leaf] = value
    return nested


def _resolve_config_file(path: str | pathlib.Path) -> pathlib.Path:
    file_path = pathlib.Path(os.path.expanduser(str(path)))
    if not file_path.is_file():
        raise ConfigError(f"Configuration file not found: {file_path}")
    return file_path


def load_config(
    config_overrides: Optional[Mapping[str, Any]] = None,
    config_file_path: Optional[str | pathlib.Path] = None,
    env_prefix: Optional[str] = DEFAULT_ENV_PREFIX,
) -> TierStoreConfig:
    """
    Build a validated configuration from every source.

    Args:
        config_overrides: Highest-precedence values.
        config_file_path: Optional user TOML file.
        env_prefix: Environment variable prefix; None disables env loading.

    Raises:
        ConfigError: If a source cannot be read or the result fails validation.
    """
    toml_files = (DEFAULT_CONFIG_FILE,)
    if config_file_path:
        toml_files += (_resolve_config_file(config_file_path),)

    class LoadedConfig(TierStoreConfig):
        config_files = toml_files
        read_environment = bool(env_prefix)

    settings_kwargs: Dict[str, Any] = nest_overrides(config_overrides or {})
    if env_prefix:
        settings_kwargs["_env_prefix"] = f"{env_prefix}{ENV_NESTED_DELIMITER}"

    try:
        config = LoadedConfig(**settings_kwargs)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in configuration file {config_file_path}: {e}")
    except (ValidationError, SettingsError) as e:
        raise ConfigError(f"TierStore configuration is invalid: {e}")

    if config_file_path:
        logger.info(f"Loaded configuration file: {config_file_path}")
    return config
