# src/tierstore/storage/tiers/database.py
"""
Database Tier - Authoritative relational storage.

This is the slowest and most durable tier, and the source of truth for
every record. Records live in a single table::

    data_entities (id TEXT PRIMARY KEY, value TEXT NOT NULL, created_at TEXT NOT NULL)

``created_at`` is stored as an ISO-8601 UTC string so that the timestamp read
back is identical to the one written by the faster tiers.

Two backends are supported:

- ``sqlite`` (default) through aiosqlite;
- ``postgres`` through an asyncpg connection pool.

Example::

    provider = DatabaseStorageProvider(DatabaseTierConfig(db_path="/tmp/tierstore.db"))
    await provider.initialize()
    await provider.save(record)
    stored = await provider.get(record.id)
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import aiosqlite
import asyncpg

from ...config.models import DatabaseTierConfig
from ...exceptions import ConfigError, ProviderStorageError
from ...models import Record, StorageTier
from ..base_provider import BaseStorageProvider

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class DatabaseStorageProvider(BaseStorageProvider):
    """Database-backed record storage (SQLite or PostgreSQL).

    Args:
        config: Tier configuration.

    Raises:
        ConfigError: If the backend or table name is not supported.
    """

    tier = StorageTier.DATABASE.value

    def __init__(self, config: DatabaseTierConfig | None = None) -> None:
        self._config = config or DatabaseTierConfig()
        if self._config.backend not in ("sqlite", "postgres"):
            raise ConfigError(f"Unsupported database backend: {self._config.backend}")
        if not _IDENTIFIER_RE.match(self._config.table_name):
            raise ConfigError(f"Invalid database table name: {self._config.table_name!r}")
        self._table = self._config.table_name
        self._db: Any = None
        self._stats = {"reads": 0, "writes": 0, "updates": 0, "deletes": 0}
        logger.debug("DatabaseStorageProvider created (backend=%s).", self._config.backend)

    @property
    def backend(self) -> str:
        return self._config.backend

    async def initialize(self) -> None:
        """Open the database and ensure the table exists."""
        if self._db is not None:
            return
        try:
            if self._config.backend == "sqlite":
                await self._init_sqlite()
            else:
                await self._init_postgres()
        except (aiosqlite.Error, asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to initialize database tier: {e}", exc_info=True)
            raise ProviderStorageError(self.tier, f"Database initialization failed: {e}")

    async def close(self) -> None:
        """Close the database connection or pool."""
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("Database storage tier closed.")

    # --- Provider contract ---

    async def get(self, record_id: str) -> Optional[Record]:
        record_id = self._require_id(record_id)
        self._ensure_open()
        try:
            if self._config.backend == "sqlite":
                row = await self._sqlite_fetch(record_id)
            else:
                row = await self._postgres_fetch(record_id)
        except (aiosqlite.Error, asyncpg.PostgresError, OSError) as e:
            raise ProviderStorageError(self.tier, f"Failed to read record '{record_id}': {e}")

        self._stats["reads"] += 1
        if row is None:
            return None
        return Record(id=row[0], value=row[1], created_at=datetime.fromisoformat(row[2]))

    async def save(self, record: Record) -> bool:
        record = self._require_record(record)
        self._ensure_open()
        params = (record.id, record.value, record.created_at.isoformat())
        try:
            if self._config.backend == "sqlite":
                await self._db.execute(
                    f"""INSERT INTO {self._table} (id, value, created_at) VALUES (?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET
                            value = excluded.value,
                            created_at = excluded.created_at""",
                    params,
                )
                await self._db.commit()
            else:
                async with self._db.acquire() as conn:
                    await conn.execute(
                        f"""INSERT INTO {self._table} (id, value, created_at) VALUES ($1, $2, $3)
                            ON CONFLICT (id) DO UPDATE SET
                                value = EXCLUDED.value,
                                created_at = EXCLUDED.created_at""",
                        *params,
                    )
        except (aiosqlite.Error, asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to save record '{record.id}' to database: {e}")
            raise ProviderStorageError(self.tier, f"Failed to save record '{record.id}': {e}")

        self._stats["writes"] += 1
        return True

    async def update(self, record: Record) -> bool:
        record = self._require_record(record)
        self._ensure_open()
        try:
            if self._config.backend == "sqlite":
                cursor = await self._db.execute(
                    f"UPDATE {self._table} SET value = ?, created_at = ? WHERE id = ?",
                    (record.value, record.created_at.isoformat(), record.id),
                )
                await self._db.commit()
                updated = cursor.rowcount > 0
            else:
                async with self._db.acquire() as conn:
                    status = await conn.execute(
                        f"UPDATE {self._table} SET value = $1, created_at = $2 WHERE id = $3",
                        record.value,
                        record.created_at.isoformat(),
                        record.id,
                    )
                updated = status.split()[-1] != "0"
        except (aiosqlite.Error, asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to update record '{record.id}' in database: {e}")
            raise ProviderStorageError(self.tier, f"Failed to update record '{record.id}': {e}")

        if updated:
            self._stats["updates"] += 1
        return updated

    async def delete(self, record_id: str) -> bool:
        record_id = self._require_id(record_id)
        self._ensure_open()
        try:
            if self._config.backend == "sqlite":
                await self._db.execute(f"DELETE FROM {self._table} WHERE id = ?", (record_id,))
                await self._db.commit()
            else:
                async with self._db.acquire() as conn:
                    await conn.execute(f"DELETE FROM {self._table} WHERE id = $1", record_id)
        except (aiosqlite.Error, asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to delete record '{record_id}' from database: {e}")
            raise ProviderStorageError(self.tier, f"Failed to delete record '{record_id}': {e}")

        self._stats["deletes"] += 1
        return True

    async def count(self) -> int:
        """Return the number of stored records."""
        self._ensure_open()
        if self._config.backend == "sqlite":
            async with self._db.execute(f"SELECT COUNT(*) FROM {self._table}") as cur:
                row = await cur.fetchone()
                return row[0] if row else 0
        async with self._db.acquire() as conn:
            return await conn.fetchval(f"SELECT COUNT(*) FROM {self._table}")

    def stats(self) -> Dict[str, Any]:
        return {"backend": self._config.backend, "table": self._table, **self._stats}

    # -- Internal helpers ----------------------------------------------------

    def _ensure_open(self) -> None:
        if self._db is None:
            raise ProviderStorageError(self.tier, "Database tier is not initialized.")

    async def _init_sqlite(self) -> None:
        db_path = os.path.expanduser(self._config.db_path)
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(db_path)
        await self._db.execute(f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                id TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        await self._db.commit()
        logger.info("Database storage tier (sqlite) initialized at %s.", db_path)

    async def _init_postgres(self) -> None:
        self._db = await asyncpg.create_pool(self._config.connection_string)
        async with self._db.acquire() as conn:
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    id TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
        logger.info("Database storage tier (postgres) initialized.")

    async def _sqlite_fetch(self, record_id: str) -> Optional[tuple]:
        async with self._db.execute(
            f"SELECT id, value, created_at FROM {self._table} WHERE id = ?", (record_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return tuple(row) if row is not None else None

    async def _postgres_fetch(self, record_id: str) -> Optional[tuple]:
        async with self._db.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT id, value, created_at FROM {self._table} WHERE id = $1", record_id
            )
        return (row["id"], row["value"], row["created_at"]) if row is not None else None


def create_database_provider(config: DatabaseTierConfig | None = None) -> DatabaseStorageProvider:
    """Create a DatabaseStorageProvider instance from config."""
    return DatabaseStorageProvider(config)


__all__ = [
    "DatabaseStorageProvider",
    "create_database_provider",
]
