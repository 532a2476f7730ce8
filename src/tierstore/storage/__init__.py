# src/tierstore/storage/__init__.py
"""
Storage module for the TierStore library.

This package holds the provider contract, the priority-ordered registry,
the concrete tier providers and the configuration-driven factory.
"""

from .base_provider import BaseStorageProvider
from .factory import PROVIDER_BUILDERS, build_providers, build_registry
from .registry import ProviderRegistry
from .tiers import (
    CacheStorageProvider,
    DatabaseStorageProvider,
    FileStorageProvider,
    VolatileRecordStore,
)

__all__ = [
    "BaseStorageProvider",
    "ProviderRegistry",
    "PROVIDER_BUILDERS",
    "build_providers",
    "build_registry",
    "CacheStorageProvider",
    "DatabaseStorageProvider",
    "FileStorageProvider",
    "VolatileRecordStore",
]
