# src/tierstore/storage/factory.py
"""
Builds storage providers and the provider registry from configuration.

The mapping from tier identity to provider class is data, like the other
lookup tables of the storage package; only enabled tiers are built.
"""

import logging
from typing import Callable, Dict, List

from ..config.models import TierStoreConfig
from ..models import StorageTier
from .base_provider import BaseStorageProvider
from .registry import ProviderRegistry
from .tiers.cache import CacheStorageProvider, VolatileRecordStore
from .tiers.database import DatabaseStorageProvider
from .tiers.file import FileStorageProvider

logger = logging.getLogger(__name__)

# --- Mapping from tier identity to provider builder ---
PROVIDER_BUILDERS: Dict[str, Callable[[TierStoreConfig], BaseStorageProvider]] = {
    StorageTier.CACHE.value: lambda cfg: CacheStorageProvider(store=VolatileRecordStore.from_config(cfg.cache)),
    StorageTier.FILE.value: lambda cfg: FileStorageProvider(cfg.file),
    StorageTier.DATABASE.value: lambda cfg: DatabaseStorageProvider(cfg.database),
}
# --- End Mapping ---


def _tier_enabled(config: TierStoreConfig, tier: str) -> bool:
    section = getattr(config, tier, None)
    return bool(getattr(section, "enabled", True))


def build_providers(config: TierStoreConfig) -> List[BaseStorageProvider]:
    """
    Instantiate the provider of every enabled tier named in the priority table.

    Tiers in the priority table without a built-in provider are skipped with a
    warning; such tiers must be registered by the hosting process.
    """
    providers: List[BaseStorageProvider] = []
    for tier, _rank in config.priority_pairs():
        builder = PROVIDER_BUILDERS.get(tier)
        if builder is None:
            logger.warning(f"No built-in provider for tier '{tier}'. Available: {list(PROVIDER_BUILDERS)}")
            continue
        if not _tier_enabled(config, tier):
            logger.info(f"Storage tier '{tier}' is disabled by configuration.")
            continue
        providers.append(builder(config))
    return providers


def build_registry(config: TierStoreConfig, providers: List[BaseStorageProvider]) -> ProviderRegistry:
    """Create the registry for ``providers`` using the configured priority table."""
    return ProviderRegistry(providers, priorities=config.priority_pairs())
