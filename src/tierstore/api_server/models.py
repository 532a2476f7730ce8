# src/tierstore/api_server/models.py
"""
Pydantic models for the TierStore API server.

This module defines the request and response models for the HTTP surface,
keeping the wire contract separate from the storage-side Record model.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models import Record


class DataValueRequest(BaseModel):
    """
    Request body for creating or updating a record.
    """
    model_config = ConfigDict(extra="forbid")

    value: str = Field(description="The string payload to store")


class DataDto(BaseModel):
    """
    Response model for a stored record.
    """
    id: str = Field(description="Unique identifier of the record")
    value: str = Field(description="The stored payload")
    created_at: datetime = Field(description="Time of the most recent write (UTC)")

    @classmethod
    def from_record(cls, record: Record) -> "DataDto":
        return cls(id=record.id, value=record.value, created_at=record.created_at)


class SaveResponse(BaseModel):
    """Response model for a successful save."""
    id: str = Field(description="Identifier minted for the new record")
