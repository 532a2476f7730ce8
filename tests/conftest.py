# tests/conftest.py
"""
Shared fixtures for TierStore tests.

Provides an in-memory provider with failure injection, used to exercise
the orchestrator and the facade without touching disks or databases, and
configuration overrides that keep file and SQLite tiers inside ``tmp_path``.
"""

import asyncio
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from tierstore.exceptions import ProviderStorageError
from tierstore.models import Record
from tierstore.storage.base_provider import BaseStorageProvider


class ScriptedProvider(BaseStorageProvider):
    """
    In-memory provider whose operations can be told to misbehave.

    Args:
        tier: Tier identity.
        raise_on: Operations that raise ProviderStorageError.
        reject_on: Operations that return False instead of writing.
        hang_on: Operations that never complete (for deadline tests).
    """

    def __init__(
        self,
        tier: str,
        raise_on: Optional[Set[str]] = None,
        reject_on: Optional[Set[str]] = None,
        hang_on: Optional[Set[str]] = None,
    ) -> None:
        self.tier = tier
        self.records: Dict[str, Record] = {}
        self.raise_on = set(raise_on or ())
        self.reject_on = set(reject_on or ())
        self.hang_on = set(hang_on or ())
        self.calls: List[Tuple[str, str]] = []
        self.initialized = False
        self.closed = False

    async def _enter(self, operation: str, record_id: str) -> None:
        self.calls.append((operation, record_id))
        if operation in self.hang_on:
            await asyncio.sleep(3600)
        if operation in self.raise_on:
            raise ProviderStorageError(self.tier, f"injected {operation} failure")

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.closed = True

    async def get(self, record_id: str) -> Optional[Record]:
        await self._enter("get", record_id)
        record = self.records.get(record_id)
        return record.model_copy() if record else None

    async def save(self, record: Record) -> bool:
        await self._enter("save", record.id)
        if "save" in self.reject_on:
            return False
        self.records[record.id] = record.model_copy()
        return True

    async def update(self, record: Record) -> bool:
        await self._enter("update", record.id)
        if "update" in self.reject_on or record.id not in self.records:
            return False
        self.records[record.id] = record.model_copy()
        return True

    async def delete(self, record_id: str) -> bool:
        await self._enter("delete", record_id)
        if "delete" in self.reject_on:
            return False
        self.records.pop(record_id, None)
        return True

    def stats(self) -> Dict[str, Any]:
        return {"item_count": len(self.records)}

    def operations(self, operation: str) -> List[str]:
        return [rid for op, rid in self.calls if op == operation]


@pytest.fixture
def scripted_provider():
    """Return the ScriptedProvider class for building failure-injecting tiers."""
    return ScriptedProvider


@pytest.fixture
def tier_config_overrides(tmp_path) -> Dict[str, Any]:
    """Configuration overrides keeping every on-disk artifact in tmp_path."""
    return {
        "file": {"base_directory": str(tmp_path / "files")},
        "database": {"db_path": str(tmp_path / "tierstore.db")},
        "logging": {"file_enabled": False},
    }
