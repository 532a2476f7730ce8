# src/tierstore/__init__.py
"""
TierStore - tiered key-value record storage.

Records are held redundantly across an ordered set of storage tiers
(in-memory cache, JSON files, a relational database). Reads are served
from the fastest tier holding the record and refresh the faster tiers that
missed; writes go to every tier, and a failed save is rolled back.
"""

from importlib.metadata import PackageNotFoundError, version

from .api import TierStore
from .exceptions import (
    ConfigError,
    InvalidArgumentError,
    ProviderStorageError,
    RecordNotFoundError,
    SaveOperationFailedError,
    StorageError,
    TierStoreError,
    UpdateOperationFailedError,
)
from .models import (
    DEFAULT_TIER_PRIORITIES,
    OperationResult,
    OperationStatus,
    Record,
    SearchResult,
    StorageTier,
)
from .orchestrator import TieredStorageOrchestrator
from .storage import BaseStorageProvider, ProviderRegistry

try:
    __version__ = version("tierstore")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "TierStore",
    "TieredStorageOrchestrator",
    "BaseStorageProvider",
    "ProviderRegistry",
    "Record",
    "SearchResult",
    "StorageTier",
    "DEFAULT_TIER_PRIORITIES",
    "OperationResult",
    "OperationStatus",
    "TierStoreError",
    "ConfigError",
    "InvalidArgumentError",
    "StorageError",
    "ProviderStorageError",
    "RecordNotFoundError",
    "SaveOperationFailedError",
    "UpdateOperationFailedError",
    "__version__",
]
