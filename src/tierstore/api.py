# src/tierstore/api.py
"""
Core API Facade for the TierStore library.

This module provides the main `TierStore` class, which is the primary entry
point for applications using TierStore. It loads configuration, builds and
initializes the storage providers, wires them into a priority-ordered
registry and exposes the orchestrator's operations.
"""

import asyncio
import logging
import pathlib
from typing import Any, Dict, List, Optional, Sequence

from .config import TierStoreConfig, load_config
from .exceptions import (
    ConfigError,
    InvalidArgumentError,
    RecordNotFoundError,
    SaveOperationFailedError,
    UpdateOperationFailedError,
)
from .logging_config import configure_logging
from .models import OperationResult, OperationStatus, Record
from .orchestrator import TieredStorageOrchestrator
from .storage.base_provider import BaseStorageProvider
from .storage.factory import build_providers, build_registry
from .storage.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class TierStore:
    """
    Main class for reading and writing records across storage tiers.

    Initialized asynchronously using the `TierStore.create()` classmethod.
    Supports ``async with`` for deterministic cleanup of tier resources.
    """
    config: TierStoreConfig
    _providers: List[BaseStorageProvider]
    _registry: ProviderRegistry
    _orchestrator: TieredStorageOrchestrator

    def __init__(self):
        """
        Private constructor. Use `TierStore.create()` for initialization.
        """
        self._providers = []
        self._closed = False

    @classmethod
    async def create(
        cls,
        config_overrides: Optional[Dict[str, Any]] = None,
        config_file_path: Optional[str | pathlib.Path] = None,
        env_prefix: Optional[str] = "TIERSTORE",
        providers: Optional[Sequence[BaseStorageProvider]] = None,
        configure_logs: bool = False,
    ) -> "TierStore":
        """
        Asynchronously creates and initializes a TierStore instance.

        Args:
            config_overrides: Highest-precedence configuration values.
            config_file_path: Optional user TOML configuration file.
            env_prefix: Prefix of configuration environment variables
                (None disables environment loading).
            providers: Providers to register instead of the configured
                built-in tiers. Their tiers must appear in the priority table.
            configure_logs: Install the logging handlers from the
                ``[logging]`` section before anything else runs.

        Raises:
            ConfigError: If the configuration or tier wiring is invalid.
        """
        config = load_config(config_overrides, config_file_path, env_prefix)
        if configure_logs:
            configure_logging(app_name="tierstore", config=config.logging.handler_options())

        instance = cls()
        instance.config = config
        await instance._initialize(providers)
        return instance

    async def _initialize(self, providers: Optional[Sequence[BaseStorageProvider]]) -> None:
        logger.info("Initializing TierStore components from configuration...")
        candidates = list(providers) if providers is not None else build_providers(self.config)
        if not candidates:
            raise ConfigError("No storage tiers are enabled.")

        try:
            for provider in candidates:
                await provider.initialize()
                self._providers.append(provider)
            self._registry = build_registry(self.config, self._providers)
        except Exception:
            await self._close_providers()
            raise

        self._orchestrator = TieredStorageOrchestrator(
            self._registry,
            provider_timeout_seconds=self.config.orchestrator.provider_timeout_seconds,
        )
        logger.info(f"TierStore ready with tiers {list(self._registry.tiers())}.")

    @property
    def orchestrator(self) -> TieredStorageOrchestrator:
        return self._orchestrator

    def get_tiers(self) -> List[str]:
        """Lists the registered tiers, fastest first."""
        return list(self._registry.tiers())

    # --- Result-returning operations ---

    async def get(self, record_id: str) -> OperationResult[Record]:
        return await self._orchestrator.get_by_id(record_id)

    async def save(self, value: str) -> OperationResult[str]:
        return await self._orchestrator.save(value)

    async def update(self, record_id: str, value: str) -> OperationResult[str]:
        return await self._orchestrator.update(record_id, value)

    async def delete(self, record_id: str) -> OperationResult[str]:
        return await self._orchestrator.delete(record_id)

    def describe(self) -> Dict[str, Any]:
        return self._orchestrator.describe()

    # --- Raising helpers ---

    async def get_or_raise(self, record_id: str) -> Record:
        """
        Return the record or raise.

        Raises:
            InvalidArgumentError: If the id is empty.
            RecordNotFoundError: If no tier holds the record.
        """
        result = await self.get(record_id)
        if result.status is OperationStatus.INVALID_ARGUMENT:
            raise InvalidArgumentError("record_id", result.error or "Invalid argument.")
        if not result.ok or result.value is None:
            raise RecordNotFoundError(record_id)
        return result.value

    async def save_or_raise(self, value: str) -> str:
        """Save ``value`` and return the new id, raising SaveOperationFailedError on failure."""
        result = await self.save(value)
        if result.status is OperationStatus.INVALID_ARGUMENT:
            raise InvalidArgumentError("value", result.error or "Invalid argument.")
        if not result.ok or result.value is None:
            raise SaveOperationFailedError(result.error or "Save operation failed.")
        return result.value

    async def update_or_raise(self, record_id: str, value: str) -> None:
        result = await self.update(record_id, value)
        if result.status is OperationStatus.INVALID_ARGUMENT:
            argument = "value" if isinstance(record_id, str) and record_id.strip() else "record_id"
            raise InvalidArgumentError(argument, result.error or "Invalid argument.")
        if result.not_found:
            raise RecordNotFoundError(record_id)
        if not result.ok:
            raise UpdateOperationFailedError(record_id, result.error or "Update operation failed.")

    # --- Lifecycle ---

    async def _close_providers(self) -> None:
        results = await asyncio.gather(*(p.close() for p in self._providers), return_exceptions=True)
        for provider, outcome in zip(self._providers, results):
            if isinstance(outcome, Exception):
                logger.error(f"Error closing storage tier '{provider.tier}': {outcome}")
        self._providers = []

    async def close(self):
        """Closes all storage tiers gracefully."""
        if self._closed:
            return
        logger.info("Closing TierStore resources...")
        await self._close_providers()
        self._closed = True
        logger.info("TierStore resources cleanup complete.")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
