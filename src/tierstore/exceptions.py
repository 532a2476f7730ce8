# src/tierstore/exceptions.py
"""
Custom exceptions for the TierStore library.

This module defines a hierarchy of custom exception classes so that callers
can tell configuration mistakes, caller errors and storage failures apart.
The orchestrator itself reports expected outcomes (not found, failed save)
as result values; these exceptions are raised by providers, the registry,
the configuration loader and the facade's ``*_or_raise`` helpers.
"""


class TierStoreError(Exception):
    """Base class for all TierStore specific errors."""
    def __init__(self, message: str = "An unspecified error occurred in TierStore."):
        super().__init__(message)

class ConfigError(TierStoreError):
    """Raised for errors related to configuration loading, validation or tier wiring."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)

class InvalidArgumentError(TierStoreError, ValueError):
    """Raised when a caller passes an empty or missing identifier, value or record."""
    def __init__(self, argument: str = "argument", message: str = "Invalid argument."):
        self.argument = argument
        super().__init__(f"{message} Argument: '{argument}'")

class StorageError(TierStoreError):
    """Base class for errors related to storage operations."""
    def __init__(self, message: str = "Storage error."):
        super().__init__(message)

class ProviderStorageError(StorageError):
    """Raised by a storage provider when its backing medium fails (I/O, connection, timeout)."""
    def __init__(self, tier: str = "Unknown", message: str = "Provider storage error."):
        self.tier = tier
        super().__init__(f"Error in storage tier '{tier}': {message}")

class RecordNotFoundError(StorageError):
    """
    Raised when a record ID is not present in any tier.
    Only raised by the facade helpers; the orchestrator reports absence as a result.
    """
    def __init__(self, record_id: str, message: str = "Record not found."):
        self.record_id = record_id
        super().__init__(f"{message} Record ID: '{record_id}'")

class SaveOperationFailedError(StorageError):
    """Raised when a record could not be written to every tier."""
    def __init__(self, message: str = "Save operation failed."):
        super().__init__(message)

class UpdateOperationFailedError(StorageError):
    """Raised when an update could not be applied to every tier."""
    def __init__(self, record_id: str = "Unknown", message: str = "Update operation failed."):
        self.record_id = record_id
        super().__init__(f"{message} Record ID: '{record_id}'")
