# src/tierstore/models.py
"""
Core data models for the TierStore library.

This module defines the record stored by every tier, the shipped tier
identities and their default priority table, and the explicit outcome
values returned by the orchestrator (so that "not found" and "I/O failure"
are told apart without using exception types as the dispatch mechanism).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class StorageTier(str, Enum):
    """
    Identities of the tiers shipped with TierStore.

    Providers report their identity as a plain string; these members are the
    names used by the built-in providers and the default priority table.
    """
    CACHE = "cache"
    FILE = "file"
    DATABASE = "database"


# Fastest/cheapest first. Injected into the registry as data, never switched on.
DEFAULT_TIER_PRIORITIES: Tuple[Tuple[str, int], ...] = (
    (StorageTier.CACHE.value, 0),
    (StorageTier.FILE.value, 1),
    (StorageTier.DATABASE.value, 2),
)


class Record(BaseModel):
    """
    The unit of storage held by every tier.

    Attributes:
        id: Opaque unique handle, minted once on first save and never reused.
        value: The string payload; the only mutable business field.
        created_at: Time of the most recent write (creation or update), UTC.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(min_length=1, description="Unique identifier of the record.")
    value: str = Field(description="Opaque string payload.")
    created_at: datetime = Field(default_factory=utc_now, description="Timestamp of the last write (UTC).")

    @field_validator("created_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC and normalise aware ones to UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    def touch(self, value: str, at: Optional[datetime] = None) -> None:
        """Replace the payload and stamp the write time in place."""
        self.value = value
        self.created_at = at or utc_now()


@dataclass
class SearchResult:
    """
    Outcome of a tier-by-tier lookup.

    Attributes:
        record: The record that was found.
        found_in: Tier that produced the hit, or None when the record has just
            been constructed or updated and must be propagated to every tier.
    """
    record: Record
    found_in: Optional[str] = None


class OperationStatus(str, Enum):
    """Outcome categories of a logical storage operation."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    FAILED = "failed"


@dataclass
class OperationResult(Generic[T]):
    """
    Explicit result of an orchestrator operation.

    Attributes:
        status: What happened to the operation as a whole.
        value: Payload on success (a Record for reads, an id for writes).
        error: Human readable reason when the status is not SUCCESS.
        tier_results: Per-tier success flags, in registry order, for the
            tiers the operation touched.
    """
    status: OperationStatus
    value: Optional[T] = None
    error: Optional[str] = None
    tier_results: Dict[str, bool] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @property
    def not_found(self) -> bool:
        return self.status is OperationStatus.NOT_FOUND

    @classmethod
    def success(cls, value: Optional[T] = None, tier_results: Optional[Dict[str, bool]] = None) -> "OperationResult[T]":
        return cls(OperationStatus.SUCCESS, value=value, tier_results=tier_results or {})

    @classmethod
    def not_found_result(cls, record_id: str) -> "OperationResult[T]":
        return cls(OperationStatus.NOT_FOUND, error=f"Record '{record_id}' was not found in any tier.")

    @classmethod
    def invalid(cls, message: str) -> "OperationResult[T]":
        return cls(OperationStatus.INVALID_ARGUMENT, error=message)

    @classmethod
    def failure(cls, message: str, tier_results: Optional[Dict[str, bool]] = None) -> "OperationResult[T]":
        return cls(OperationStatus.FAILED, error=message, tier_results=tier_results or {})

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the result for CLI/JSON output."""
        value: Any = self.value
        if isinstance(value, Record):
            value = value.model_dump(mode="json")
        return {
            "status": self.status.value,
            "value": value,
            "error": self.error,
            "tier_results": dict(self.tier_results),
        }
