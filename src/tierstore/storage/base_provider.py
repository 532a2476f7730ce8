# src/tierstore/storage/base_provider.py
"""
Abstract Base Class for storage tier providers.

This module defines the uniform CRUD contract that every tier (cache, file,
database, or any further tier) implements. Providers are independent of one
another; ordering and propagation between tiers is the orchestrator's job.
"""

import abc
from typing import Any, Dict, Optional

from ..exceptions import InvalidArgumentError
from ..models import Record


class BaseStorageProvider(abc.ABC):
    """
    Abstract Base Class for a single storage tier.

    Concrete implementations declare their tier identity through the ``tier``
    class attribute. The identity is used only for registry ordering and
    lookup; it carries no other behavior.

    Error contract:
        - absence is a normal outcome (``get`` returns None, ``update`` returns False);
        - a failing backing medium raises ``ProviderStorageError``;
        - an empty id or a missing record raises ``InvalidArgumentError``.
    """

    tier: str = ""

    async def initialize(self) -> None:
        """Acquire resources (connections, directories). Called once at startup."""

    async def close(self) -> None:
        """Release resources acquired by :meth:`initialize`."""

    def stats(self) -> Dict[str, Any]:
        """Return tier-local counters for diagnostics."""
        return {}

    @abc.abstractmethod
    async def get(self, record_id: str) -> Optional[Record]:
        """
        Retrieve a record by its ID.

        Args:
            record_id: The ID of the record to retrieve.

        Returns:
            The Record if this tier holds it, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def save(self, record: Record) -> bool:
        """
        Insert a record. Saving the same record twice overwrites it.

        Args:
            record: The Record to store.

        Returns:
            True if the record was stored.
        """
        pass

    @abc.abstractmethod
    async def update(self, record: Record) -> bool:
        """
        Replace the value and timestamp of an existing record.

        Args:
            record: The Record carrying the new value and timestamp.

        Returns:
            True if the record was updated, False if this tier does not hold it.
        """
        pass

    @abc.abstractmethod
    async def delete(self, record_id: str) -> bool:
        """
        Delete a record. Deleting an absent ID is a no-op that reports success.

        Args:
            record_id: The ID of the record to delete.

        Returns:
            True unless the deletion could not be carried out.
        """
        pass

    # --- Validation helpers shared by implementations ---

    @staticmethod
    def _require_id(record_id: Optional[str]) -> str:
        if record_id is None or not str(record_id).strip():
            raise InvalidArgumentError("record_id", "Record ID cannot be null or empty.")
        return record_id

    @staticmethod
    def _require_record(record: Optional[Record]) -> Record:
        if record is None or not record.id or not record.id.strip():
            raise InvalidArgumentError("record", "Record and its ID cannot be null or empty.")
        return record

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tier={self.tier!r})"
