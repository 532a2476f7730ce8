# src/tierstore/storage/tiers/file.py
"""
File Tier - JSON file storage with retention.

This module implements the medium-durability tier, storing each record as a
separate JSON document in a base directory. The file name carries the
expiry time of the copy::

    {record_id}_{expiry:%Y%m%d%H%M%S}.json      (expiry in UTC)

A read that finds an expired file removes it and reports absence, so the
tier ages out records on its own without a background process. Saving a
record replaces any previous file for the same ID.
File operations are performed asynchronously with aiofiles.
"""

import asyncio
import glob
import logging
import os
import pathlib
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import aiofiles
import aiofiles.os as aios
from pydantic import ValidationError

from ...config.models import FileTierConfig
from ...exceptions import InvalidArgumentError, ProviderStorageError
from ...models import Record, StorageTier
from ..base_provider import BaseStorageProvider

logger = logging.getLogger(__name__)

EXPIRY_FORMAT = "%Y%m%d%H%M%S"
FILE_EXTENSION = ".json"


class FileStorageProvider(BaseStorageProvider):
    """
    Manages persistence of records as JSON files.

    Args:
        config: Tier configuration (base directory and retention).
    """

    tier = StorageTier.FILE.value

    def __init__(self, config: Optional[FileTierConfig] = None) -> None:
        self._config = config or FileTierConfig()
        self._storage_dir = pathlib.Path(os.path.expanduser(self._config.base_directory))
        self._stats = {"reads": 0, "writes": 0, "deletes": 0, "expirations": 0}

    @property
    def storage_dir(self) -> pathlib.Path:
        return self._storage_dir

    async def initialize(self) -> None:
        """
        Create the storage directory if it does not exist.

        Raises:
            ProviderStorageError: If the directory cannot be created.
        """
        try:
            await aios.makedirs(self._storage_dir, exist_ok=True)
            logger.info(f"File storage tier initialized at: {self._storage_dir.resolve()}")
        except OSError as e:
            logger.error(f"Failed to create file storage directory {self._storage_dir}: {e}")
            raise ProviderStorageError(self.tier, f"Could not create storage directory: {e}")

    # --- Path helpers ---

    def _require_safe_id(self, record_id: Optional[str]) -> str:
        record_id = self._require_id(record_id)
        if os.sep in record_id or (os.altsep and os.altsep in record_id) or record_id in (".", ".."):
            raise InvalidArgumentError("record_id", "Record ID cannot contain path separators.")
        return record_id

    def _path_for(self, record_id: str, expires_at: datetime) -> pathlib.Path:
        return self._storage_dir / f"{record_id}_{expires_at.strftime(EXPIRY_FORMAT)}{FILE_EXTENSION}"

    @staticmethod
    def _parse_name(file_name: str) -> Optional[tuple]:
        """Split ``{id}_{expiry}.json`` into ``(id, expiry)``; None for foreign files."""
        if not file_name.endswith(FILE_EXTENSION):
            return None
        stem = file_name[: -len(FILE_EXTENSION)]
        record_id, sep, stamp = stem.rpartition("_")
        if not sep or not record_id:
            return None
        try:
            expires_at = datetime.strptime(stamp, EXPIRY_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            return None
        return record_id, expires_at

    def _glob_record_files(self, record_id: str) -> List[pathlib.Path]:
        return list(self._storage_dir.glob(f"{glob.escape(record_id)}_*{FILE_EXTENSION}"))

    async def _find_files(self, record_id: str) -> List[tuple]:
        """Return ``(path, expiry)`` pairs of every file stored for ``record_id``."""
        loop = asyncio.get_running_loop()
        try:
            candidates = await loop.run_in_executor(None, self._glob_record_files, record_id)
        except OSError as e:
            raise ProviderStorageError(self.tier, f"Could not search storage directory: {e}")

        found = []
        for path in candidates:
            # Ids sharing this one as a prefix ("a" and "a_b") match the same pattern.
            parsed = self._parse_name(path.name)
            if parsed is not None and parsed[0] == record_id:
                found.append((path, parsed[1]))
        return found

    async def _remove_files(self, paths: List[pathlib.Path]) -> None:
        for path in paths:
            try:
                await aios.remove(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                raise ProviderStorageError(self.tier, f"Could not remove file {path.name}: {e}")

    async def _write(self, record: Record) -> None:
        stale = [path for path, _ in await self._find_files(record.id)]
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self._config.retention_seconds)
        path = self._path_for(record.id, expires_at)
        try:
            async with aiofiles.open(path, mode="w", encoding="utf-8") as f:
                await f.write(record.model_dump_json())
        except OSError as e:
            logger.error(f"Error writing record '{record.id}' to file {path}: {e}")
            raise ProviderStorageError(self.tier, f"Failed to write file for record '{record.id}': {e}")
        await self._remove_files([p for p in stale if p != path])
        self._stats["writes"] += 1
        logger.debug(f"Record '{record.id}' written to {path.name}")

    # --- Provider contract ---

    async def get(self, record_id: str) -> Optional[Record]:
        record_id = self._require_safe_id(record_id)
        files = await self._find_files(record_id)
        if not files:
            return None

        path, expires_at = max(files, key=lambda item: item[1])
        if datetime.now(timezone.utc) > expires_at:
            logger.debug(f"Record '{record_id}' expired in file tier; removing {path.name}")
            await self._remove_files([p for p, _ in files])
            self._stats["expirations"] += 1
            return None

        try:
            async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ProviderStorageError(self.tier, f"Failed to read file for record '{record_id}': {e}")

        try:
            record = Record.model_validate_json(content)
        except ValidationError as e:
            logger.error(f"Corrupt record file {path.name}: {e}")
            raise ProviderStorageError(self.tier, f"Corrupt file for record '{record_id}'.")

        self._stats["reads"] += 1
        return record

    async def save(self, record: Record) -> bool:
        record = self._require_record(record)
        self._require_safe_id(record.id)
        await self._write(record)
        return True

    async def update(self, record: Record) -> bool:
        record = self._require_record(record)
        self._require_safe_id(record.id)
        if await self.get(record.id) is None:
            return False
        await self._write(record)
        return True

    async def delete(self, record_id: str) -> bool:
        record_id = self._require_safe_id(record_id)
        files = await self._find_files(record_id)
        if files:
            await self._remove_files([p for p, _ in files])
            self._stats["deletes"] += 1
        return True

    def stats(self) -> Dict[str, Any]:
        return {
            "storage_dir": str(self._storage_dir),
            "retention_seconds": self._config.retention_seconds,
            **self._stats,
        }


def create_file_provider(config: Optional[FileTierConfig] = None) -> FileStorageProvider:
    """Create a FileStorageProvider instance from config."""
    return FileStorageProvider(config)


__all__ = [
    "FileStorageProvider",
    "create_file_provider",
]
