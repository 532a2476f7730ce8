# src/tierstore/storage/tiers/__init__.py
"""
Storage Tiers Package.

Provides the concrete providers for each storage tier.

Tiers:
- **CacheStorageProvider** (rank 0): In-memory records with TTL
- **FileStorageProvider** (rank 1): One JSON file per record, with retention
- **DatabaseStorageProvider** (rank 2): Authoritative SQLite/PostgreSQL table

Architecture::

    CacheStorageProvider → FileStorageProvider → DatabaseStorageProvider
         (memory)             (JSON files)          (SQLite/PostgreSQL)
"""

from .cache import (
    CachedEntry,
    CacheStorageProvider,
    VolatileRecordStore,
    create_cache_provider,
)
from .database import (
    DatabaseStorageProvider,
    create_database_provider,
)
from .file import (
    FileStorageProvider,
    create_file_provider,
)

__all__ = [
    # Cache (rank 0)
    "CachedEntry",
    "CacheStorageProvider",
    "VolatileRecordStore",
    "create_cache_provider",
    # File (rank 1)
    "FileStorageProvider",
    "create_file_provider",
    # Database (rank 2)
    "DatabaseStorageProvider",
    "create_database_provider",
]
